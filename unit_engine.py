"""Unit-aware calculator engine used by the rink shell.

The shell only talks to this module through four calls:

    load(config)              -> Context
    eval_line(ctx, line)      -> Value        (raises EvalError)
    one_line(ctx, line)       -> str          (raises EvalError)
    query(ctx, word, limit)   -> Reply

Expressions are parsed with sympy and units come from `sympy.physics.units`,
so anything sympy knows (`meter`, `km`, `mile`, `hour`, `newton`, `c`, ...)
can be used. A conversion is written `expr -> unit` or `expr to unit`.

Examples:
    1 + 2                 -> 3
    10 km -> mile         -> 6.21371192237334 mile (length)
    3 meter + 2 foot      -> 3.6096 meter (length)
"""
from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import sympy
from sympy import Expr, Function, Mul, Rational
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)
from sympy.physics import units
from sympy.physics.units import Quantity, convert_to
from sympy.physics.units.systems.si import SI, dimsys_SI

# significant digits used when a magnitude is not an exact integer
DIGITS = 15

TRANSFORMATIONS = standard_transformations + (implicit_multiplication, convert_xor)

# rejected before parsing: string literals, `__` names, attribute access
UNSAFE_RE = re.compile(r"""__|['"]|\.\s*[A-Za-z_]""")

# names visible to parsed lines: sympy only, no Python builtins
SAFE_GLOBALS: Dict[str, Any] = {name: getattr(sympy, name) for name in sympy.__all__}
SAFE_GLOBALS.update({"max": sympy.Max, "min": sympy.Min, "__builtins__": {}})

# `expr -> unit` or `expr to unit`
CONVERSION_RE = re.compile(r"\s*->\s*|\s+to\s+")

SI_BASE_UNITS = [
    units.meter,
    units.kilogram,
    units.second,
    units.ampere,
    units.kelvin,
    units.mole,
    units.candela,
]

# fuzzy matches below this ratio are not worth returning from `query`
MIN_FUZZY_RATIO = 0.5


class LoadError(Exception):
    """Raised when the unit table cannot be built."""


class EvalError(Exception):
    """An expression could not be evaluated; the message is shown to the user."""


@dataclass
class Context:
    """Mutable engine state: the unit table and the previous answer."""
    units: Dict[str, Quantity]
    ans: Optional[Expr] = None

    def namespace(self) -> Dict[str, Any]:
        names: Dict[str, Any] = dict(self.units)
        if self.ans is not None:
            names["ans"] = self.ans
            names["_"] = self.ans
        return names


@dataclass
class Value:
    """Result of a successful evaluation."""
    magnitude: str
    unit: str = ""
    quantity: str = ""
    expr: Optional[Expr] = field(default=None, repr=False, compare=False)

    def __str__(self) -> str:
        out = self.magnitude
        if self.unit:
            out += " " + self.unit
        if self.quantity:
            out += f" ({self.quantity})"
        return out


@dataclass
class QueryResult:
    unit: Optional[str]
    quantity: str = ""
    score: float = 0.0

    def __str__(self) -> str:
        if self.quantity:
            return f"{self.unit} ({self.quantity})"
        return str(self.unit)


@dataclass
class Reply:
    results: List[QueryResult] = field(default_factory=list)


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

def unit_table() -> Dict[str, Quantity]:
    """Collect every quantity exported by `sympy.physics.units` by name."""
    table = {}
    for name in dir(units):
        if name.startswith("_"):
            continue
        obj = getattr(units, name)
        if isinstance(obj, Quantity):
            table[name] = obj
    return table


def load(config=None) -> Context:
    """Build a fresh engine context.

    `config` is accepted for symmetry with the shell's other entry points;
    the unit table does not depend on it.
    """
    try:
        table = unit_table()
    except Exception as e:
        raise LoadError(f"Failed to load unit table: {e}") from e
    if not table:
        raise LoadError("Failed to load unit table: no units found")
    return Context(units=table)


# ---------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------

def _parse(ctx: Context, text: str) -> Expr:
    text = text.strip()
    if not text:
        raise EvalError("Expected expression")
    if UNSAFE_RE.search(text):
        raise EvalError(f"Parse error in `{text}`: strings, `__` names and attribute access are not allowed")
    try:
        expr = parse_expr(
            text,
            local_dict=ctx.namespace(),
            global_dict=dict(SAFE_GLOBALS),
            transformations=TRANSFORMATIONS,
        )
    except Exception as e:
        raise EvalError(f"Parse error in `{text}`: {e}") from e
    if not isinstance(expr, Expr):
        raise EvalError(f"Not an expression: `{text}`")
    unknown = sorted(str(s) for s in expr.free_symbols)
    if unknown:
        raise EvalError(f"Unknown unit `{unknown[0]}`")
    return expr


def _dimension(expr: Expr):
    for f in expr.atoms(Function):
        if isinstance(f, AppliedUndef):
            raise EvalError(f"Unknown function `{f.func}`")
        for arg in f.args:
            if not dimsys_SI.is_dimensionless(_dimension(arg)):
                raise EvalError(f"Conformance error: argument of `{f.func}` must be dimensionless")
    try:
        dim = SI._collect_factor_and_dimension(expr)[1]
    except (TypeError, ValueError) as e:
        raise EvalError(f"Conformance error: {e}") from e
    return dim


def dimension_name(dim) -> str:
    if dimsys_SI.is_dimensionless(dim):
        return ""
    return str(dim.name)


def _format_number(num: Expr) -> str:
    if num.is_Integer:
        try:
            return str(num)
        except ValueError:
            # too many digits for str(); show it in scientific notation
            return str(num.evalf(DIGITS))
    if num.is_number and num.is_real:
        return "{:.{}g}".format(float(num), DIGITS)
    return str(num.evalf(DIGITS))


def _split(expr: Expr):
    """Split `expr` into a numeric factor and its unit part."""
    if expr.is_Mul:
        unit_part = [f for f in expr.args if f.atoms(Quantity)]
        num_part = [f for f in expr.args if not f.atoms(Quantity)]
        return Mul(*num_part), Mul(*unit_part)
    if expr.atoms(Quantity):
        return sympy.S.One, expr
    return expr, sympy.S.One


def to_value(expr: Expr) -> Value:
    dim = _dimension(expr)
    if expr.is_Add and expr.atoms(Quantity):
        # mixed units in a sum are reported in SI base units
        expr = convert_to(expr, SI_BASE_UNITS)
    num, unit = _split(expr)
    # exact fractions in the unit part (e.g. meter**(1/2)) are kept as-is
    num = num.xreplace({r: r.evalf(DIGITS) for r in num.atoms(Rational) if r.q != 1})
    return Value(
        magnitude=_format_number(num),
        unit="" if unit == 1 else str(unit),
        quantity=dimension_name(dim),
        expr=expr,
    )


def eval_line(ctx: Context, line: str) -> Value:
    """Evaluate one line, optionally converting it to a target unit."""
    parts = CONVERSION_RE.split(line.strip(), maxsplit=1)
    expr = _parse(ctx, parts[0])
    target = _parse(ctx, parts[1]) if len(parts) == 2 else None
    try:
        dim = _dimension(expr)
        if target is not None:
            target_dim = _dimension(target)
            if not dimsys_SI.equivalent_dims(dim, target_dim):
                have = dimension_name(dim) or "dimensionless"
                want = dimension_name(target_dim) or "dimensionless"
                raise EvalError(f"Conformance error: {have} is not {want}")
            expr = convert_to(expr, target)
        value = to_value(expr)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise EvalError(f"Cannot evaluate `{line.strip()}`: {e}") from e
    ctx.ans = value.expr
    return value


def one_line(ctx: Context, line: str) -> str:
    return str(eval_line(ctx, line))


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------

def _score(word: str, name: str) -> float:
    if name.startswith(word):
        # exact prefixes always rank ahead of fuzzy matches
        return 2.0 + (len(word) / len(name) if name else 0.0)
    return difflib.SequenceMatcher(None, word.lower(), name.lower()).ratio()


def query(ctx: Context, word: str, limit: int) -> Reply:
    """Search the unit table for names resembling `word`.

    Prefix matches come first (closest length first), followed by fuzzy
    matches above MIN_FUZZY_RATIO. At most `limit` results are returned.
    """
    scored = []
    for name in ctx.units:
        score = _score(word, name)
        if score >= MIN_FUZZY_RATIO:
            scored.append((score, name))
    scored.sort(key=lambda item: (-item[0], len(item[1]), item[1]))

    results = []
    for score, name in scored[:max(limit, 0)]:
        try:
            quantity = dimension_name(SI.get_quantity_dimension(ctx.units[name]))
        except Exception:
            quantity = ""
        results.append(QueryResult(unit=name, quantity=quantity, score=score))
    return Reply(results=results)


__all__ = [
    "Context",
    "EvalError",
    "LoadError",
    "QueryResult",
    "Reply",
    "Value",
    "eval_line",
    "load",
    "one_line",
    "query",
]
