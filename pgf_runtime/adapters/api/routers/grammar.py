# pgf_runtime/adapters/api/routers/grammar.py
import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from pgf_runtime.adapters.api.schemas import GrammarJson, GrammarOut
from pgf_runtime.core.ports import IGrammarEngine
from pgf_runtime.shared.container import Container

logger = structlog.get_logger()

router = APIRouter(prefix="/grammar", tags=["Grammar"])


@router.get("", response_model=GrammarOut)
@inject
async def describe_grammar(
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> GrammarOut:
    """Grammar summary, including any concrete blocks discarded while decoding."""
    return GrammarOut(**await engine.describe())


@router.get("/json", response_model=GrammarJson)
@inject
async def grammar_json(
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> GrammarJson:
    """Full decoded model, keys in declaration order."""
    return GrammarJson(**await engine.to_json())


@router.post("/reload", response_model=GrammarOut)
@inject
async def reload_grammar(
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> GrammarOut:
    await engine.reload()
    logger.info("grammar_reloaded")
    return GrammarOut(**await engine.describe())
