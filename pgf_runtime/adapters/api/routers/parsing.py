# pgf_runtime/adapters/api/routers/parsing.py
import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from pgf_runtime.adapters.api.schemas import ParseRequest, ParseResponse
from pgf_runtime.core.ports import IGrammarEngine
from pgf_runtime.shared.container import Container

logger = structlog.get_logger()

router = APIRouter(prefix="/parse", tags=["Parsing"])


@router.post(
    "/{lang_code}",
    response_model=ParseResponse,
    status_code=status.HTTP_200_OK,
    summary="Parse a sentence into abstract syntax trees",
)
@inject
async def parse_sentence(
    lang_code: str,
    payload: ParseRequest,
    engine: IGrammarEngine = Depends(Provide[Container.grammar_engine]),
) -> ParseResponse:
    """
    Returns every tree licensed by the grammar for the sentence.
    An empty list is a successful answer: the sentence is simply not covered.
    """
    trees = await engine.parse(lang_code, payload.sentence, cat=payload.cat)
    if not trees:
        logger.info("parse_no_derivation", lang=lang_code, sentence=payload.sentence)
    return ParseResponse(
        language=lang_code,
        sentence=payload.sentence,
        trees=[str(t) for t in trees],
        count=len(trees),
    )
