"""
Condition evaluation.

Conditions are ANDed. Values are compared loosely, the way sheet cells
need it: "5" equals 5, "TRUE" equals True, and a missing path only
equals None.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

from ..models.workflow import MISSING, Condition, LiteralCondition

logger = logging.getLogger(__name__)


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """
    Look up a condition key in the context.

    Dotted keys walk nested mappings. A plain key that is absent or empty
    at the top level falls back to the same key on context["task"].
    """
    if "." in path:
        value: Any = context
        for part in path.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            else:
                return MISSING
        return value

    value = context.get(path, MISSING)
    if value is MISSING or value is None or value == "":
        task = context.get("task")
        if isinstance(task, Mapping) and path in task:
            return task[path]
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> Optional[float]:
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _to_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return {1: True, 0: False}.get(value)
    if isinstance(value, str):
        return {"true": True, "1": True, "false": False, "0": False}.get(value.strip().lower())
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality across sheet cell types."""
    left_empty = left is MISSING or left is None
    right_empty = right is MISSING or right is None
    if left_empty or right_empty:
        return left_empty and right_empty

    if isinstance(left, bool) or isinstance(right, bool):
        left_bool, right_bool = _to_bool(left), _to_bool(right)
        return left_bool is not None and left_bool == right_bool

    if _is_number(left) or _is_number(right):
        left_num, right_num = to_number(left), to_number(right)
        return left_num is not None and left_num == right_num

    return left == right


def evaluate_condition(condition: Condition, context: Mapping[str, Any]) -> bool:
    actual = resolve_path(context, condition.path)

    if isinstance(condition, LiteralCondition):
        return loose_equals(actual, condition.value)

    op = condition.operator
    if op in (">", ">=", "<", "<="):
        left, right = to_number(actual), to_number(condition.value)
        if left is None or right is None:
            return False
        if op == ">":
            return left > right
        if op == ">=":
            return left >= right
        if op == "<":
            return left < right
        return left <= right

    if op in ("==", "==="):
        return loose_equals(actual, condition.value)
    if op in ("!=", "!=="):
        return not loose_equals(actual, condition.value)

    if op == "in":
        return any(loose_equals(actual, item) for item in condition.value)
    if op == "not_in":
        return not any(loose_equals(actual, item) for item in condition.value)

    logger.warning(f"Unknown operator: {op}")
    return False


def conditions_match(conditions: Iterable[Condition], context: Mapping[str, Any]) -> bool:
    """True when every condition holds. No conditions always match; any error fails."""
    try:
        return all(evaluate_condition(condition, context) for condition in conditions)
    except Exception as e:
        logger.error(f"Error evaluating conditions: {e}", exc_info=True)
        return False
