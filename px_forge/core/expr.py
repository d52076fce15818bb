"""Colour expression parsing and evaluation.

Palette values and brush bindings may be written as:

    #FF0000                     hex literal
    $gold  /  gold              reference to another colour
    darken($gold, 20%)          reduce HSL lightness by percent of remaining range
    lighten($gold, 20%)         increase HSL lightness
    saturate($gold, 20%)        increase HSL saturation
    desaturate($gold, 20%)      decrease HSL saturation
    mix($a, $b, 50%)            blend all four channels
    alpha($gold, 50%)           overwrite the alpha channel

Calls nest: `darken(mix($a, #fff, 25%), 10%)`. An expression is parsed once
into a tree of frozen nodes and evaluated against a lookup callable that maps
a bare colour name to a Colour (or None).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from px_forge.core import colour as colours
from px_forge.core.colour import Colour
from px_forge.core.errors import ExpressionError, UndefinedColourError, UnknownFunctionError


@dataclass(frozen=True)
class HexLiteral:
    text: str


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Percent:
    value: float


@dataclass(frozen=True)
class FunctionCall:
    name: str
    args: tuple[Expr, ...]


Expr = HexLiteral | Reference | Percent | FunctionCall

Lookup = Callable[[str], Colour | None]

FUNCTIONS = ['darken', 'lighten', 'saturate', 'desaturate', 'mix', 'alpha']

_ADJUSTERS: dict[str, Callable[[Colour, float], Colour]] = {
    'darken': colours.darken,
    'lighten': colours.lighten,
    'saturate': colours.saturate,
    'desaturate': colours.desaturate,
    'alpha': colours.with_alpha,
}


def strip_sigil(name: str) -> str:
    """`$gold` and `gold` name the same colour."""
    return name[1:] if name.startswith('$') else name


def parse(text: str) -> Expr:
    """Parse a colour expression string into an expression tree."""
    text = text.strip()
    if not text:
        raise ExpressionError('Empty colour expression')

    if text.startswith('#'):
        return HexLiteral(text)

    if text.endswith('%'):
        try:
            value = float(text[:-1])
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            raise ExpressionError(
                f'Invalid percentage: {text}',
                help='Use format like 20% or 50.5%',
            )
        return Percent(value)

    paren = text.find('(')
    if paren >= 0:
        if not text.endswith(')'):
            raise ExpressionError(f'Unclosed function call: {text}', help='Add closing parenthesis')
        name = text[:paren].strip()
        if not name:
            raise ExpressionError(f'Missing function name: {text}')
        return FunctionCall(name, tuple(parse(arg) for arg in _split_args(text[paren + 1 : -1])))

    if ',' in text or ')' in text:
        raise ExpressionError(f'Unexpected characters in colour expression: {text}')
    name = strip_sigil(text)
    if not name:
        raise ExpressionError('Empty colour reference')
    return Reference(name)


def _split_args(inner: str) -> list[str]:
    """Split on commas at paren depth zero."""
    args: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in inner:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth < 0:
                raise ExpressionError(f'Unbalanced parentheses in: {inner}')
        elif ch == ',' and depth == 0:
            args.append(''.join(current).strip())
            current = []
            continue
        current.append(ch)
    if depth != 0:
        raise ExpressionError(f'Unbalanced parentheses in: {inner}')
    last = ''.join(current).strip()
    if last or args:
        args.append(last)
    if any(not arg for arg in args):
        raise ExpressionError(f'Empty argument in: {inner}')
    return args


def references(expr: Expr) -> set[str]:
    """All colour names an expression mentions, however deeply nested."""
    match expr:
        case Reference(name):
            return {name}
        case FunctionCall(_, args):
            found: set[str] = set()
            for arg in args:
                found |= references(arg)
            return found
        case _:
            return set()


def evaluate(expr: Expr, lookup: Lookup) -> Colour:
    """Evaluate an expression tree, resolving references through `lookup`."""
    match expr:
        case HexLiteral(text):
            return Colour.from_hex(text)
        case Reference(name):
            found = lookup(name)
            if found is None:
                raise UndefinedColourError(name)
            return found
        case Percent():
            raise ExpressionError(
                'Percentage cannot be evaluated as a colour',
                help='Percentages are only valid as function arguments',
            )
        case FunctionCall(name, args):
            return _call(name, args, lookup)
    raise ExpressionError(f'Not a colour expression: {expr!r}')


def _call(name: str, args: tuple[Expr, ...], lookup: Lookup) -> Colour:
    if name == 'mix':
        if len(args) != 3:
            raise ExpressionError(
                f'mix() requires 3 arguments, got {len(args)}',
                help='Usage: mix($colour1, $colour2, 50%)',
            )
        first = evaluate(args[0], lookup)
        second = evaluate(args[1], lookup)
        return colours.mix(first, second, _expect_percent(args[2], name) / 100.0)

    adjust = _ADJUSTERS.get(name)
    if adjust is None:
        raise UnknownFunctionError(name, FUNCTIONS)
    if len(args) != 2:
        raise ExpressionError(
            f'{name}() requires 2 arguments, got {len(args)}',
            help=f'Usage: {name}($colour, 20%)',
        )
    return adjust(evaluate(args[0], lookup), _expect_percent(args[1], name))


def _expect_percent(expr: Expr, func_name: str) -> float:
    if not isinstance(expr, Percent):
        raise ExpressionError(
            f'{func_name}() requires a percentage argument',
            help=f'Usage: {func_name}($colour, 20%)',
        )
    return expr.value
