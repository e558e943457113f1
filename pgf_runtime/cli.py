# pgf_runtime/cli.py
#
# Command line entry point (`pgf-runtime`).
#
#   info       grammar summary plus discarded-block diagnostics
#   parse      sentence -> trees, one per line
#   linearize  tree -> text (or every variant / the field table)
#   json       declaration-ordered JSON projection
#   serve      HTTP API via uvicorn
#
# Results go to STDOUT; logs and errors go to STDERR.

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from pgf_runtime.adapters.projection.json_projection import grammar_to_json
from pgf_runtime.core.codec.reader import DecodeResult, decode
from pgf_runtime.core.domain.exceptions import DecodeError, QueryError
from pgf_runtime.core.domain.trees import read_expr
from pgf_runtime.core.linearization import linearize, linearize_all, tabular_linearize
from pgf_runtime.core.parsing.chart import MAX_PARSE_TOKENS, parse
from pgf_runtime.shared.logging_setup import init_logging

EXIT_OK = 0
EXIT_QUERY_ERROR = 1
EXIT_DECODE_ERROR = 2


def _load(path: str) -> DecodeResult:
    return decode(Path(path).read_bytes())


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------
def cmd_info(args: argparse.Namespace) -> int:
    grammar, diagnostics = _load(args.pgf)
    summary = {
        "name": grammar.name,
        "version": "%d.%d" % grammar.version,
        "startcat": grammar.start_cat,
        "categories": grammar.categories,
        "functions": grammar.functions,
        "languages": {name: grammar.language_code(name) for name in grammar.languages},
        "diagnostics": [d._asdict() for d in diagnostics],
    }
    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return EXIT_OK
    print(f"{summary['name']} (PGF {summary['version']}), start category {summary['startcat']}")
    print(f"  {len(grammar.categories)} categories, {len(grammar.functions)} functions")
    for name, code in summary["languages"].items():
        print(f"  {name}" + (f" [{code}]" if code else ""))
    for diag in diagnostics:
        print(f"  discarded {diag}")
    return EXIT_OK


def cmd_parse(args: argparse.Namespace) -> int:
    grammar, _ = _load(args.pgf)
    found = parse(grammar, args.language, args.sentence, cat=args.cat, max_tokens=args.max_tokens)
    trees = sorted(str(t) for t in found)
    if not trees:
        print("no parse", file=sys.stderr)
    for tree in trees:
        print(tree)
    return EXIT_OK


def cmd_linearize(args: argparse.Namespace) -> int:
    grammar, _ = _load(args.pgf)
    tree = read_expr(args.tree)
    if args.table:
        for label, text in tabular_linearize(grammar, args.language, tree).items():
            print(f"{label}\t{text}")
    elif args.all:
        for text in linearize_all(grammar, args.language, tree):
            print(text)
    else:
        print(linearize(grammar, args.language, tree))
    return EXIT_OK


def cmd_json(args: argparse.Namespace) -> int:
    grammar, _ = _load(args.pgf)
    print(grammar_to_json(grammar, indent=args.indent))
    return EXIT_OK


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    if args.pgf:
        os.environ["PGF_RUNTIME_PGF_PATH"] = args.pgf
    uvicorn.run(
        "pgf_runtime.adapters.api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return EXIT_OK


# -----------------------------------------------------------------------------
# MAIN
# -----------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pgf-runtime", description="Decode, parse and linearize PGF grammars")
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("info", help="Summarize a grammar")
    p.add_argument("pgf")
    p.add_argument("--json", action="store_true", help="Emit the summary as JSON")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("parse", help="Parse a sentence")
    p.add_argument("pgf")
    p.add_argument("language")
    p.add_argument("sentence")
    p.add_argument("--cat", help="Start category (default: the grammar's)")
    p.add_argument(
        "--max-tokens", type=int, default=MAX_PARSE_TOKENS, help=f"Refuse longer input (default: {MAX_PARSE_TOKENS})"
    )
    p.set_defaults(func=cmd_parse)

    p = sub.add_parser("linearize", help="Linearize a tree")
    p.add_argument("pgf")
    p.add_argument("language")
    p.add_argument("tree", help="GF expression, e.g. 'Pred (This Pizza) Delicious'")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--all", action="store_true", help="Every distinct rendering")
    mode.add_argument("--table", action="store_true", help="Every field with its label")
    p.set_defaults(func=cmd_linearize)

    p = sub.add_parser("json", help="Print the JSON projection")
    p.add_argument("pgf")
    p.add_argument("--indent", type=int, default=None)
    p.set_defaults(func=cmd_json)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--pgf", help="Grammar file (overrides PGF_RUNTIME_PGF_PATH)")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)
    init_logging(level=args.log_level, log_format="console")

    try:
        return args.func(args)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except DecodeError as e:
        print(f"error: cannot decode {args.pgf}: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except QueryError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_QUERY_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
