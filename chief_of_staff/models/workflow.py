"""Workflow definition and result models.

Workflows are configuration rows: a trigger name, a map of conditions and
an ordered list of actions. They are parsed once when loaded into the
immutable types below.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from pydantic import BaseModel, Field


class _Missing:
    """Sentinel for a context path that does not exist."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class Trigger(str, Enum):
    """Trigger names the orchestrator fires. Matching is exact string equality."""
    TASK_CREATED = "task_created"
    STATUS_CHANGED = "status_changed"
    REPLY_CLASSIFIED = "reply_classified"


class ActionKind(str, Enum):
    """Closed set of action types a workflow may declare."""
    SEND_ASSIGNMENT_NOTICE = "send_email"
    UPDATE_STATUS = "update_status"
    UPDATE_PRIORITY = "update_priority"
    LOG_INTERACTION = "log_interaction"
    SEND_FOLLOWUP = "send_followup"
    ESCALATE = "escalate_to_boss"
    REASSIGN = "assign_task"


KNOWN_OPERATORS = (">", ">=", "<", "<=", "==", "===", "!=", "!==", "in", "not_in")


@dataclass(frozen=True)
class LiteralCondition:
    """Context value at `path` must loosely equal `value`."""
    path: str
    value: Any


@dataclass(frozen=True)
class ComparisonCondition:
    """Context value at `path` compared to `value` with `operator`."""
    path: str
    operator: str
    value: Any


Condition = Union[LiteralCondition, ComparisonCondition]


@dataclass(frozen=True)
class ActionSpec:
    """One declared action. `kind` keeps the raw tag so unknown types can be reported."""
    kind: str
    params: Dict[str, Any] = field(default_factory=dict)
    delay_hours: float = 0.0

    @property
    def action_kind(self) -> Optional[ActionKind]:
        try:
            return ActionKind(self.kind)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "params": dict(self.params), "delay_hours": self.delay_hours}


@dataclass(frozen=True)
class WorkflowDefinition:
    """A parsed, read-only workflow."""
    workflow_id: str
    trigger: str
    name: str = ""
    active: bool = True
    conditions: Tuple[Condition, ...] = ()
    actions: Tuple[ActionSpec, ...] = ()


class ActionResult(BaseModel):
    """Outcome of one action."""
    type: str
    executed: bool = False
    error: Optional[str] = None
    message: Optional[str] = None
    delay_hours: float = 0.0
    scheduled: bool = False
    scheduled_for: Optional[str] = None


class WorkflowRunReport(BaseModel):
    """Report for one workflow whose conditions matched."""
    workflow_id: str
    workflow_name: str = ""
    executed: bool = True
    actions: List[ActionResult] = Field(default_factory=list)
