"""
Parsing of workflow rows into WorkflowDefinition.

A row's Conditions and Actions may be JSON text or already-decoded
objects. Trigger_Event is usually a plain trigger name but older rows
keep the whole config there as JSON: {"trigger", "conditions", "actions"}.
Anything malformed raises WorkflowParseError so the row can be skipped.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from ..models.workflow import (
    ActionSpec,
    KNOWN_OPERATORS,
    ComparisonCondition,
    Condition,
    LiteralCondition,
    WorkflowDefinition,
)
from .exceptions import WorkflowParseError

logger = logging.getLogger(__name__)

TRUTHY_FLAGS = ("true", "yes", "1")
LIST_OPERATORS = ("in", "not_in")


def is_truthy_flag(value: Any) -> bool:
    """Sheet checkbox semantics: True, "TRUE", "true", 1 and "yes" are on."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_FLAGS
    return False


def _decode(value: Any, what: str) -> Any:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise WorkflowParseError(f"Invalid JSON in {what}: {e}") from e
    return value


def parse_conditions(raw: Any) -> Tuple[Condition, ...]:
    """
    Parse a conditions map.

    `{"status": "on_time"}` is a literal match, `{"hours": {"operator": ">",
    "value": 24}}` a comparison. Unknown operators are kept and evaluate to
    false; `in` and `not_in` must be given a list.
    """
    raw = _decode(raw, "conditions")
    if not raw:
        return ()
    if not isinstance(raw, Mapping):
        raise WorkflowParseError(f"Conditions must be an object, got {type(raw).__name__}")

    conditions = []
    for path, value in raw.items():
        if isinstance(value, Mapping) and "operator" in value:
            operator = str(value["operator"])
            operand = value.get("value")
            if operator in LIST_OPERATORS and not isinstance(operand, list):
                raise WorkflowParseError(f"Operator {operator} on {path} needs a list value")
            if operator not in KNOWN_OPERATORS:
                logger.warning(f"Unknown operator {operator} on {path}, condition will never match")
            conditions.append(ComparisonCondition(path=str(path), operator=operator, value=operand))
        else:
            conditions.append(LiteralCondition(path=str(path), value=value))
    return tuple(conditions)


def _parse_delay(raw: Mapping) -> float:
    value = raw.get("delay_hours")
    if value in (None, "", 0):
        value = raw.get("delayHours")
    if value in (None, ""):
        return 0.0
    try:
        delay = float(value)
    except (TypeError, ValueError) as e:
        raise WorkflowParseError(f"Invalid delay_hours: {value!r}") from e
    return max(delay, 0.0)


def parse_action(raw: Any) -> ActionSpec:
    if not isinstance(raw, Mapping):
        raise WorkflowParseError(f"Action must be an object, got {type(raw).__name__}")

    kind = raw.get("type") or raw.get("action") or ""
    params = raw.get("params")
    if params is None:
        params = raw.get("parameters")
    params = _decode(params, "action params") or {}
    if not isinstance(params, Mapping):
        raise WorkflowParseError(f"Params of action {kind!r} must be an object")

    return ActionSpec(kind=str(kind), params=dict(params), delay_hours=_parse_delay(raw))


def parse_actions(raw: Any) -> Tuple[ActionSpec, ...]:
    """Parse an ordered action list."""
    raw = _decode(raw, "actions")
    if not raw:
        return ()
    if not isinstance(raw, list):
        raise WorkflowParseError(f"Actions must be a list, got {type(raw).__name__}")
    return tuple(parse_action(item) for item in raw)


def _embedded_config(trigger_cell: Any) -> Optional[Dict[str, Any]]:
    if isinstance(trigger_cell, Mapping):
        return dict(trigger_cell)
    if isinstance(trigger_cell, str) and trigger_cell.strip().startswith("{"):
        config = _decode(trigger_cell, "Trigger_Event")
        if not isinstance(config, Mapping):
            raise WorkflowParseError("Trigger_Event config must be an object")
        return dict(config)
    return None


def parse_definition(row: Mapping[str, Any]) -> WorkflowDefinition:
    """Build a WorkflowDefinition from a Workflows row."""
    workflow_id = str(row.get("Workflow_ID") or row.get("Name") or "").strip()
    if not workflow_id:
        raise WorkflowParseError("Workflow row has neither Workflow_ID nor Name")

    config = _embedded_config(row.get("Trigger_Event")) or {}
    trigger = config.get("trigger") if config else row.get("Trigger_Event")

    conditions = config.get("conditions") or row.get("Conditions")
    actions = config.get("actions") or row.get("Actions")

    return WorkflowDefinition(
        workflow_id=workflow_id,
        trigger=str(trigger or "").strip(),
        name=str(row.get("Name") or ""),
        active=is_truthy_flag(row.get("Active")),
        conditions=parse_conditions(conditions),
        actions=parse_actions(actions),
    )
