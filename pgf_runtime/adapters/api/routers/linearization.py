# pgf_runtime/adapters/api/routers/linearization.py
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from pgf_runtime.adapters.api.schemas import LinearizeRequest, LinearizeResponse
from pgf_runtime.core.domain.trees import read_expr
from pgf_runtime.core.ports import IGrammarEngine
from pgf_runtime.shared.container import Container

router = APIRouter(prefix="/linearize", tags=["Linearization"])


@router.post(
    "/{lang_code}",
    response_model=LinearizeResponse,
    status_code=status.HTTP_200_OK,
    summary="Render an abstract syntax tree as text",
)
@inject
async def linearize_tree(
    lang_code: str,
    payload: LinearizeRequest,
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> LinearizeResponse:
    tree = read_expr(payload.tree)
    return LinearizeResponse(
        language=lang_code,
        tree=str(tree),
        text=await engine.linearize(lang_code, tree),
        variants=await engine.linearize_all(lang_code, tree),
        table=await engine.tabular_linearize(lang_code, tree),
    )
