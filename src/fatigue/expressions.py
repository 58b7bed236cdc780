"""Evaluation of derived parameters declared in assessment configurations.

Expressions use a small arithmetic language: numbers, names, the binary
operators ``+ - * / % **``, unary signs, parentheses and calls to
``min``, ``max``, ``abs`` and the ``math::`` functions listed in
:data:`MATH_FUNCTIONS` (``math.sin`` is accepted as well).
"""

from __future__ import annotations

import ast
import math
import operator
import re
from typing import Any, Callable, Dict, Mapping, MutableMapping, Sequence

__all__ = [
    "ExpressionError",
    "MATH_FUNCTIONS",
    "evaluate",
    "evaluate_expressions",
]

NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

MATH_FUNCTIONS: Mapping[str, Callable[..., float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sqrt": math.sqrt,
    "exp": math.exp,
    "ln": math.log,
    "log": math.log10,
    "floor": math.floor,
    "ceil": math.ceil,
    "abs": abs,
}

_FUNCTIONS: Mapping[str, Callable[..., float]] = {
    "min": min,
    "max": max,
    "abs": abs,
}

_BINARY_OPERATORS: Mapping[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS: Mapping[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class ExpressionError(ValueError):
    """An expression could not be parsed or evaluated."""

    def __init__(self, message: str, *, name: str | None = None, expression: str | None = None) -> None:
        super().__init__(message)
        self.name = name
        self.expression = expression


def _parse(expression: str) -> ast.Expression:
    source = str(expression).replace("math::", "math.")
    try:
        return ast.parse(source.strip(), mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(
            f"Invalid expression syntax: {expression!r}", expression=expression
        ) from exc


def _resolve_function(node: ast.expr) -> Callable[..., float]:
    if isinstance(node, ast.Name) and node.id in _FUNCTIONS:
        return _FUNCTIONS[node.id]
    if (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id == "math"
        and node.attr in MATH_FUNCTIONS
    ):
        return MATH_FUNCTIONS[node.attr]
    raise ExpressionError(f"Unsupported function: {ast.unparse(node)}")


def _evaluate_node(node: ast.AST, context: Mapping[str, float]) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body, context)
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ExpressionError(f"Unsupported literal: {node.value!r}")
        # Float arithmetic only, so ** overflows with OverflowError.
        return float(node.value)
    if isinstance(node, ast.Name):
        if node.id not in context:
            raise ExpressionError(f"Unknown name: {node.id}")
        return float(context[node.id])
    if isinstance(node, ast.BinOp):
        handler = _BINARY_OPERATORS.get(type(node.op))
        if handler is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return handler(
            _evaluate_node(node.left, context), _evaluate_node(node.right, context)
        )
    if isinstance(node, ast.UnaryOp):
        unary = _UNARY_OPERATORS.get(type(node.op))
        if unary is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return unary(_evaluate_node(node.operand, context))
    if isinstance(node, ast.Call):
        if node.keywords:
            raise ExpressionError("Keyword arguments are not supported")
        function = _resolve_function(node.func)
        arguments = [_evaluate_node(argument, context) for argument in node.args]
        return float(function(*arguments))
    raise ExpressionError(f"Unsupported syntax: {type(node).__name__}")


def evaluate(expression: str, context: Mapping[str, float] | None = None) -> float:
    """Evaluate ``expression`` against the names bound in ``context``."""

    tree = _parse(expression)
    try:
        return _evaluate_node(tree, context or {})
    except ExpressionError as exc:
        if exc.expression is None:
            exc.expression = expression
        raise
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise ExpressionError(
            f"Failed to evaluate {expression!r}: {exc}", expression=expression
        ) from exc


def evaluate_expressions(
    parameters: Mapping[str, float],
    variables: Mapping[str, str],
    order: Sequence[str],
) -> Dict[str, float]:
    """Evaluate derived ``variables`` and return the ones listed in ``order``.

    ``parameters`` seed the context.  Variables are evaluated in declaration
    order, so a variable may use any parameter or earlier variable.  Names in
    ``order`` that are not variables are skipped.
    """

    context: MutableMapping[str, float] = {}
    for key, value in parameters.items():
        context[str(key)] = float(value)

    for key, expression in variables.items():
        if not NAME_PATTERN.match(str(key)):
            raise ExpressionError(f"Invalid variable name: {key!r}", name=str(key))
        try:
            context[str(key)] = evaluate(expression, context)
        except ExpressionError as exc:
            exc.name = str(key)
            raise

    results: Dict[str, float] = {}
    for key in order:
        expression = variables.get(key)
        if expression is None:
            continue
        value = evaluate(expression, context)
        context[key] = value
        results[key] = value
    return results
