# pgf_runtime/adapters/api/__init__.py
"""
REST API Adapter.

HTTP entry point built on FastAPI. It depends on `pgf_runtime.core`
through the IGrammarEngine port, gets its engine from
`pgf_runtime.shared.container`, and contains no grammar logic.
"""

# NOTE: create_app is not imported here so the DI container can wire
# router modules without a circular import.
