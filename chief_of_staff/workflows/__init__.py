"""
Workflow engine: declarative trigger, condition and action rules.
"""

from .actions import ActionExecutor, task_id_from
from .conditions import conditions_match, evaluate_condition, loose_equals, resolve_path
from .definitions import (
    is_truthy_flag,
    parse_action,
    parse_actions,
    parse_conditions,
    parse_definition,
)
from .engine import WorkflowEngine
from .exceptions import ActionError, WorkflowError, WorkflowParseError
from .provider import StaticWorkflowProvider, StoreWorkflowProvider, WorkflowProvider
from .queue import DelayedActionQueue

__all__ = [
    "ActionExecutor",
    "task_id_from",
    "conditions_match",
    "evaluate_condition",
    "loose_equals",
    "resolve_path",
    "is_truthy_flag",
    "parse_action",
    "parse_actions",
    "parse_conditions",
    "parse_definition",
    "WorkflowEngine",
    "ActionError",
    "WorkflowError",
    "WorkflowParseError",
    "StaticWorkflowProvider",
    "StoreWorkflowProvider",
    "WorkflowProvider",
    "DelayedActionQueue",
]
