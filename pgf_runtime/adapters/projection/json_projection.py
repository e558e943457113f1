# pgf_runtime/adapters/projection/json_projection.py
"""
Decoded grammar -> JSON document.

Keys are emitted in declaration order (every table in the model is an
insertion-ordered mapping), so two renderings of the same file are
byte-identical as long as `sort_keys` stays off.

Shape:

    {"abstract":  {"name", "startcat", "funs": {fun: {"args", "cat"}}},
     "concretes": {lang: {"flags", "printnames", "productions",
                          "functions", "sequences", "categories",
                          "totalfids"}}}

Symbols render as {"type": "SymCat", "args": [arg, field]}; token
symbols carry the token text rather than the literal table index.
"""

import json
from typing import Any, Dict, List

from pgf_runtime.core.domain.grammar import AbstractSyntax, Apply, ConcreteSyntax, Grammar, Production
from pgf_runtime.core.domain.symbols import SymCat, SymKP, SymKS, SymLit, SymNE, SymVar, Symbol


def _abstract_to_json(abstract: AbstractSyntax) -> Dict[str, Any]:
    return {
        "name": abstract.name,
        "startcat": abstract.start_cat,
        "funs": {
            name: {"args": list(fun.arg_cats), "cat": fun.result_cat}
            for name, fun in abstract.functions.items()
        },
    }


def _tokens_to_json(concrete: ConcreteSyntax, literals) -> List[Dict[str, Any]]:
    return [{"type": "SymKS", "args": [concrete.literals[i]]} for i in literals]


def symbol_to_json(concrete: ConcreteSyntax, sym: Symbol) -> Dict[str, Any]:
    if isinstance(sym, (SymCat, SymLit)):
        return {"type": type(sym).__name__, "args": [sym.arg, sym.field]}
    if isinstance(sym, SymVar):
        return {"type": "SymVar", "args": [sym.arg, sym.var]}
    if isinstance(sym, SymKS):
        return {"type": "SymKS", "args": [concrete.literals[sym.literal]]}
    if isinstance(sym, SymKP):
        alts = [
            {"type": "Alt", "args": [_tokens_to_json(concrete, alt.literals), list(alt.prefixes)]}
            for alt in sym.alts
        ]
        return {"type": "SymKP", "args": [_tokens_to_json(concrete, sym.default), alts]}
    if isinstance(sym, SymNE):
        return {"type": "SymNE", "args": []}
    raise TypeError(f"not a symbol: {sym!r}")


def _production_to_json(prod: Production) -> Dict[str, Any]:
    if isinstance(prod, Apply):
        return {
            "type": "Apply",
            "fid": prod.function,
            "args": [{"type": "PArg", "hypos": list(a.hypos), "fid": a.fid} for a in prod.args],
        }
    return {"type": "Coerce", "arg": prod.fid}


def concrete_to_json(concrete: ConcreteSyntax) -> Dict[str, Any]:
    return {
        "flags": dict(concrete.flags),
        "printnames": dict(concrete.printnames),
        "productions": {
            str(fid): [_production_to_json(p) for p in prods]
            for fid, prods in concrete.productions.items()
        },
        "functions": [{"name": f.name, "lins": list(f.sequences)} for f in concrete.functions],
        "sequences": [[symbol_to_json(concrete, s) for s in seq] for seq in concrete.sequences],
        "categories": {
            name: {"start": cat.start, "end": cat.end}
            for name, cat in concrete.categories.items()
        },
        "totalfids": concrete.total_fids,
    }


def grammar_to_dict(grammar: Grammar) -> Dict[str, Any]:
    return {
        "abstract": _abstract_to_json(grammar.abstract),
        "concretes": {name: concrete_to_json(c) for name, c in grammar.concretes.items()},
    }


def grammar_to_json(grammar: Grammar, indent: int = None) -> str:
    return json.dumps(grammar_to_dict(grammar), ensure_ascii=False, indent=indent)
