# pgf_runtime/adapters/api/routers/languages.py
from typing import List

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from pgf_runtime.adapters.api.schemas import LanguageOut
from pgf_runtime.core.ports import IGrammarEngine
from pgf_runtime.shared.container import Container

router = APIRouter(prefix="/languages", tags=["Languages"])


@router.get("", response_model=List[LanguageOut])
@inject
async def list_languages(
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> List[LanguageOut]:
    """Concrete syntaxes that decoded successfully, in declaration order."""
    summary = await engine.describe()
    return [LanguageOut(**item) for item in summary["languages"]]
