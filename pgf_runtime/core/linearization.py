# pgf_runtime/core/linearization.py
"""
Linearizer: abstract syntax tree -> surface text.

Each node is evaluated bottom-up into candidates (fid, fields), one per
concrete rule whose argument fids accept the fids chosen for the
children. Agreement falls out of this: a child that can only be built at
a singular fid only combines with rules expecting that fid, so the
parent's table lookup realizes the matching form.

Context-dependent variants (SymKP) depend on the token that ends up
following them, which is only known once the whole sentence is
assembled. They travel through the fields unresolved and are settled in
a final right-to-left pass.
"""

from __future__ import annotations

import itertools
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

import structlog

from pgf_runtime.core.domain.exceptions import MissingLinearization
from pgf_runtime.core.domain.grammar import LITERAL_CATEGORIES, ConcreteSyntax, Grammar
from pgf_runtime.core.domain.symbols import PROJECTIONS, SymKP, SymKS, SymNE, select_variant
from pgf_runtime.core.domain.trees import Expr, Literal, Meta, check_tree, literal_text

logger = structlog.get_logger()

META_TOKEN = "?"

Token = Union[str, SymKP]
Field = Tuple[Token, ...]


class Candidate(NamedTuple):
    fid: Optional[int]  # None: a metavariable, fits any argument slot
    fields: Tuple[Field, ...]


class _Linearizer:
    def __init__(self, concrete: ConcreteSyntax):
        self.concrete = concrete
        self.memo: Dict[Expr, List[Candidate]] = {}

    def candidates(self, expr: Expr) -> List[Candidate]:
        if expr not in self.memo:
            self.memo[expr] = self._build(expr)
        return self.memo[expr]

    def _build(self, expr: Expr) -> List[Candidate]:
        if isinstance(expr, Meta):
            return [Candidate(None, ())]
        if isinstance(expr, Literal):
            return [Candidate(LITERAL_CATEGORIES[expr.category], ((literal_text(expr),),))]

        rules = self.concrete.rules_for(expr.fun)
        if not rules:
            raise MissingLinearization(expr.fun, self.concrete.name)
        children = [self.candidates(arg) for arg in expr.args]

        found: Dict[Candidate, None] = {}
        for rule in rules:
            options = [
                [c for c in cands if c.fid is None or self.concrete.accepts(expected, c.fid)]
                for expected, cands in zip(rule.args, children)
            ]
            for combo in itertools.product(*options):
                fields = []
                for seq in rule.lins:
                    field = self._fill(seq, combo)
                    if field is None:
                        break
                    fields.append(field)
                else:
                    found[Candidate(rule.fid, tuple(fields))] = None

        if not found:
            raise MissingLinearization(expr.fun, self.concrete.name, reason="no consistent production")
        return list(found)

    def _fill(self, seq, combo: Tuple[Candidate, ...]) -> Optional[Field]:
        out: List[Token] = []
        for sym in seq:
            if isinstance(sym, SymKS):
                out.extend(self.concrete.words[sym.literal])
            elif isinstance(sym, SymKP):
                out.append(sym)
            elif isinstance(sym, PROJECTIONS):
                child = combo[sym.arg]
                if child.fid is None:
                    out.append(META_TOKEN)
                else:
                    out.extend(child.fields[sym.field])
            elif isinstance(sym, SymNE):
                return None
            # SymVar contributes nothing.
        return tuple(out)

    def render(self, field: Field) -> str:
        """Resolves pending variants right to left and joins the tokens."""
        words: List[str] = []
        following = None
        for token in reversed(field):
            if isinstance(token, SymKP):
                variant = select_variant(token, following)
                chosen = [w for lit in variant for w in self.concrete.words[lit]]
            else:
                chosen = [token]
            words[:0] = chosen
            if chosen:
                following = chosen[0]
        return " ".join(words)


def _candidates(grammar: Grammar, language: str, tree: Expr) -> Tuple[_Linearizer, List[Candidate]]:
    concrete = grammar.concrete(language)
    check_tree(grammar.abstract, tree)
    lin = _Linearizer(concrete)
    return lin, lin.candidates(tree)


def linearize(grammar: Grammar, language: str, tree: Expr) -> str:
    """
    First field of the first consistent linearization of `tree`.

    Raises:
        UnknownLanguage, UnknownFunction, TypeMismatch
        MissingLinearization: some function of the tree has no usable
            production in `language`.
    """
    lin, cands = _candidates(grammar, language, tree)
    first = cands[0]
    if first.fid is None:
        return META_TOKEN
    return lin.render(first.fields[0]) if first.fields else ""


def linearize_all(grammar: Grammar, language: str, tree: Expr) -> List[str]:
    """Every distinct surface string of `tree`, in rule order."""
    lin, cands = _candidates(grammar, language, tree)
    texts: Dict[str, None] = {}
    for cand in cands:
        if cand.fid is None:
            texts[META_TOKEN] = None
        elif cand.fields:
            texts[lin.render(cand.fields[0])] = None
    return list(texts)


def tabular_linearize(grammar: Grammar, language: str, tree: Expr) -> Dict[str, str]:
    """Field label -> text for the first consistent linearization."""
    lin, cands = _candidates(grammar, language, tree)
    first = cands[0]
    if first.fid is None:
        return {"s": META_TOKEN}
    labels = lin.concrete.labels_of(first.fid)
    table = {label: lin.render(field) for label, field in zip(labels, first.fields)}
    logger.debug("pgf_tabular_linearize", language=language, fid=first.fid, fields=len(table))
    return table
