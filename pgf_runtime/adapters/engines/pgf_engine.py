# pgf_runtime/adapters/engines/pgf_engine.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog

from pgf_runtime.core.codec.reader import BlockDiagnostic, decode
from pgf_runtime.core.domain.exceptions import (
    DecodeError,
    GrammarNotLoaded,
    UnknownLanguage,
)
from pgf_runtime.core.domain.grammar import Grammar
from pgf_runtime.core.domain.trees import Expr, read_expr, show_expr
from pgf_runtime.core.linearization import linearize, linearize_all, tabular_linearize
from pgf_runtime.core.parsing.chart import parse
from pgf_runtime.core.parsing.tokenize import DEFAULT_TOKENIZER
from pgf_runtime.core.ports import IGrammarEngine, Tokenizer
from pgf_runtime.adapters.projection.json_projection import grammar_to_dict
from pgf_runtime.shared.config import settings

logger = structlog.get_logger()


class PGFGrammarEngine(IGrammarEngine):
    """
    Grammar engine over a compiled PGF binary, decoded in-process.

    Loading is the only file I/O. A missing file or a fatal decode error
    leaves the engine unloaded (health_check is False) rather than
    crashing the process; queries then raise GrammarNotLoaded.
    """

    def __init__(
        self,
        pgf_path: Optional[str] = None,
        tokenizer: Optional[Tokenizer] = None,
        max_tokens: Optional[int] = None,
        max_trees: Optional[int] = None,
    ):
        self.pgf_path = pgf_path or settings.PGF_PATH
        self.tokenizer = tokenizer or DEFAULT_TOKENIZER
        self.max_tokens = max_tokens or settings.MAX_PARSE_TOKENS
        self.max_trees = max_trees or settings.MAX_TREES
        self.grammar: Optional[Grammar] = None
        self.diagnostics: Tuple[BlockDiagnostic, ...] = ()
        self.load_error: Optional[str] = None
        self._load_grammar()

    def _load_grammar(self) -> None:
        """Reads and decodes the .pgf file."""
        path = Path(self.pgf_path)
        if not path.exists():
            self.grammar, self.diagnostics = None, ()
            self.load_error = f"file not found: {path}"
            logger.error("pgf_file_not_found", path=str(path))
            return
        try:
            result = decode(path.read_bytes())
        except DecodeError as e:
            self.grammar, self.diagnostics = None, ()
            self.load_error = str(e)
            logger.error("pgf_load_failed", path=str(path), error=type(e).__name__, reason=str(e))
            return
        self.grammar, self.diagnostics = result.grammar, result.diagnostics
        self.load_error = None
        logger.info(
            "pgf_grammar_loaded",
            path=str(path),
            version="%d.%d" % self.grammar.version,
            languages=self.grammar.languages,
            discarded=len(self.diagnostics),
        )

    def _require_grammar(self) -> Grammar:
        if self.grammar is None:
            raise GrammarNotLoaded(f"No grammar loaded from {self.pgf_path}: {self.load_error}")
        return self.grammar

    def _resolve_concrete_name(self, lang_code: str) -> Optional[str]:
        """
        Maps a caller's language code to a concrete syntax name.

        Tried in order: exact concrete name, the `language` flag (full tag
        or its primary subtag, so "en" finds "en-US"), then a concrete name
        suffix ("eng" -> "FoodsEng").
        """
        grammar = self._require_grammar()
        if lang_code in grammar.concretes:
            return lang_code
        wanted = lang_code.replace("_", "-").lower()
        for name in grammar.languages:
            code = grammar.language_code(name)
            if code and (code.lower() == wanted or code.lower().split("-")[0] == wanted):
                return name
        target_suffix = lang_code.capitalize()
        for name in grammar.languages:
            if name.endswith(target_suffix):
                return name
        return None

    def resolve_language(self, lang_code: str) -> str:
        name = self._resolve_concrete_name(lang_code)
        if name is None:
            raise UnknownLanguage(lang_code, self._require_grammar().languages)
        return name

    def _as_tree(self, tree: Union[str, Expr]) -> Expr:
        return read_expr(tree) if isinstance(tree, str) else tree

    async def parse(self, lang_code: str, sentence: str, cat: Optional[str] = None) -> List[Expr]:
        grammar = self._require_grammar()
        language = self.resolve_language(lang_code)
        tokens = self.tokenizer.tokenize(sentence)
        found = parse(grammar, language, tokens, cat=cat, max_tokens=self.max_tokens)
        trees = sorted(found, key=show_expr)
        logger.info("pgf_parsed", lang=language, tokens=len(tokens), trees=len(trees))
        return trees[:self.max_trees]

    async def linearize(self, lang_code: str, tree: Union[str, Expr]) -> str:
        grammar = self._require_grammar()
        return linearize(grammar, self.resolve_language(lang_code), self._as_tree(tree))

    async def linearize_all(self, lang_code: str, tree: Union[str, Expr]) -> List[str]:
        grammar = self._require_grammar()
        return linearize_all(grammar, self.resolve_language(lang_code), self._as_tree(tree))

    async def tabular_linearize(self, lang_code: str, tree: Union[str, Expr]) -> Dict[str, str]:
        grammar = self._require_grammar()
        return tabular_linearize(grammar, self.resolve_language(lang_code), self._as_tree(tree))

    async def get_supported_languages(self) -> List[str]:
        if not self.grammar:
            return []
        return self.grammar.languages

    async def describe(self) -> Dict[str, Any]:
        grammar = self._require_grammar()
        return {
            "name": grammar.name,
            "version": "%d.%d" % grammar.version,
            "startcat": grammar.start_cat,
            "categories": grammar.categories,
            "functions": len(grammar.functions),
            "languages": [
                {"name": name, "code": grammar.language_code(name)} for name in grammar.languages
            ],
            "diagnostics": [d._asdict() for d in self.diagnostics],
        }

    async def to_json(self) -> Dict[str, Any]:
        return grammar_to_dict(self._require_grammar())

    async def reload(self) -> None:
        self._load_grammar()

    async def health_check(self) -> bool:
        return self.grammar is not None
