# pgf_runtime/adapters/api/routers/__init__.py
"""
API Route Definitions.

- `health`: readiness probe.
- `languages`: decoded concrete syntaxes.
- `parsing`: sentence -> trees.
- `linearization`: tree -> sentence(s).
- `grammar`: grammar summary and JSON projection.
"""

from . import grammar
from . import health
from . import languages
from . import linearization
from . import parsing

__all__ = [
    "grammar",
    "health",
    "languages",
    "linearization",
    "parsing",
]
