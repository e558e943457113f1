# tests/__init__.py
"""
Test Suite for the PGF runtime

Organization:
- `pgf_builder` / `grammars`: test-side PGF writer and the fixture grammars it encodes.
- `test_primitives`, `test_*_decoder`, `test_recovery`: binary decoding.
- `test_chart_parser`, `test_linearizer`, `test_trees`: queries over decoded grammars.
- `test_engine`, `test_api_smoke`, `test_cli`: adapters.
"""
