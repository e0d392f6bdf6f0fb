from .task import (
    TaskStatus,
    TaskPriority,
    TaskDraft,
    ACTIVE_STATUSES,
    LEGACY_STATUS_MAP,
    normalize_status,
    is_known_status,
    generate_task_id,
)
from .staff import StaffMember, Project, split_tags, join_tags
from .workflow import (
    MISSING,
    Trigger,
    ActionKind,
    KNOWN_OPERATORS,
    LiteralCondition,
    ComparisonCondition,
    Condition,
    ActionSpec,
    WorkflowDefinition,
    ActionResult,
    WorkflowRunReport,
)

__all__ = [
    "TaskStatus",
    "TaskPriority",
    "TaskDraft",
    "ACTIVE_STATUSES",
    "LEGACY_STATUS_MAP",
    "normalize_status",
    "is_known_status",
    "generate_task_id",
    "StaffMember",
    "Project",
    "split_tags",
    "join_tags",
    "MISSING",
    "Trigger",
    "ActionKind",
    "KNOWN_OPERATORS",
    "LiteralCondition",
    "ComparisonCondition",
    "Condition",
    "ActionSpec",
    "WorkflowDefinition",
    "ActionResult",
    "WorkflowRunReport",
]
