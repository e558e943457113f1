# pgf_runtime/adapters/api/routers/health.py
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Response, status

from pgf_runtime.adapters.api.schemas import HealthOut
from pgf_runtime.core.ports import IGrammarEngine
from pgf_runtime.shared.container import Container

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/ready", response_model=HealthOut)
@inject
async def readiness(
    response: Response,
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> HealthOut:
    """200 once a grammar is loaded, 503 otherwise."""
    if not await engine.health_check():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthOut(status="not_ready")
    summary = await engine.describe()
    return HealthOut(
        status="ready",
        grammar=summary["name"],
        languages=await engine.get_supported_languages(),
    )
