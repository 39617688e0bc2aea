"""Evaluate a flow branch condition against an execution context."""

from __future__ import annotations

from numbers import Real
from typing import Any

from advisor_agent.flows.schema import Condition
from advisor_agent.flows.templating import MISSING, resolve_path


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _strict_equals(left: Any, right: Any) -> bool:
    # A bool never equals a number (True == 1 in Python).
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def evaluate_condition(condition: Condition, context: Any) -> bool:
    """Return whether ``condition`` holds for ``context``.

    ``condition.field`` is a dotted path into the context (``result.count``,
    ``variables.client_name`` ...). A path that cannot be resolved makes
    every operator evaluate to ``False``; for ``exists`` that is the
    correct answer. Numeric operators on non-numeric values are ``False``.
    """
    value = resolve_path(context, condition.field)
    if value is MISSING:
        return False

    op = condition.operator
    expected = condition.value

    if op == "exists":
        return value is not None
    if op == "eq":
        return _strict_equals(value, expected)
    if op == "neq":
        return not _strict_equals(value, expected)
    if op in ("gt", "lt"):
        if not (_is_number(value) and _is_number(expected)):
            return False
        return value > expected if op == "gt" else value < expected
    if op == "contains":
        if not isinstance(value, str) or expected is None:
            return False
        return str(expected) in value
    return False
