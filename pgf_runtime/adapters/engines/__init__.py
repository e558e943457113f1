# pgf_runtime/adapters/engines/__init__.py
"""
Grammar Engine Adapters.

Concrete implementations of the `IGrammarEngine` port. PGFGrammarEngine
loads a compiled PGF file with the in-process decoder and serves parse /
linearize requests against it.
"""

from .pgf_engine import PGFGrammarEngine

__all__ = [
    "PGFGrammarEngine",
]
