# pgf_runtime/core/ports/__init__.py
"""
Core Ports (Interfaces).

Abstract base classes the adapters implement. The HTTP layer and the CLI
talk to a grammar through IGrammarEngine only, and the parser accepts any
Tokenizer, so segmentation can be swapped without touching the core.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


# =========================================================
# 1. TEXT PORTS
# =========================================================

class Tokenizer(ABC):
    """
    Port for sentence segmentation ahead of parsing.
    """
    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        """Splits a sentence into the tokens the grammar's literals are matched against."""
        pass


# =========================================================
# 2. GRAMMAR PORTS
# =========================================================

class IGrammarEngine(ABC):
    """
    Port for a loaded grammar: parsing, linearization and introspection.
    """
    @abstractmethod
    async def parse(self, lang_code: str, sentence: str, cat: Optional[str] = None) -> List[Any]:
        """Returns the trees whose linearization is `sentence` (possibly none)."""
        pass

    @abstractmethod
    async def linearize(self, lang_code: str, tree: Any) -> str:
        """Renders a tree (or its textual form) in one language."""
        pass

    @abstractmethod
    async def linearize_all(self, lang_code: str, tree: Any) -> List[str]:
        """Every distinct rendering of a tree."""
        pass

    @abstractmethod
    async def tabular_linearize(self, lang_code: str, tree: Any) -> Dict[str, str]:
        """Field label -> text for a tree."""
        pass

    @abstractmethod
    async def get_supported_languages(self) -> List[str]:
        """Concrete syntax names that decoded successfully."""
        pass

    @abstractmethod
    async def describe(self) -> Dict[str, Any]:
        """Grammar summary: name, start category, languages, diagnostics."""
        pass

    @abstractmethod
    async def to_json(self) -> Dict[str, Any]:
        """Declaration-ordered JSON projection of the grammar."""
        pass

    @abstractmethod
    async def reload(self) -> None:
        """Re-reads the grammar from its source."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """True when a grammar is loaded."""
        pass
