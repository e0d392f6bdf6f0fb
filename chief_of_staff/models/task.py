"""Task data model for the task automation engine."""

import json
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator


class TaskPriority(str, Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """Lifecycle status of a task.

    Status only tracks where the task is in its lifecycle; conversation and
    approval state live in separate fields.
    """
    AI_ASSIST = "ai_assist"           # Needs clarification before assignment
    NOT_ACTIVE = "not_active"         # Assigned, awaiting first response
    ON_TIME = "on_time"               # Active, on track
    SLOW_PROGRESS = "slow_progress"   # Active, behind schedule
    COMPLETED = "completed"           # Employee claims done, pending boss review
    CLOSED = "closed"                 # Verified complete or cancelled (archival)
    ON_HOLD = "on_hold"               # Temporarily paused
    SOMEDAY = "someday"               # Deferred to future


# Statuses counted towards a staff member's active workload
ACTIVE_STATUSES = (TaskStatus.ON_TIME, TaskStatus.NOT_ACTIVE, TaskStatus.SLOW_PROGRESS)

# Older rows in the sheet still carry these values
LEGACY_STATUS_MAP: Dict[str, TaskStatus] = {
    "Draft": TaskStatus.AI_ASSIST,
    "New": TaskStatus.AI_ASSIST,
    "Assigned": TaskStatus.NOT_ACTIVE,
    "Active": TaskStatus.ON_TIME,
    "Done Pending Review": TaskStatus.COMPLETED,
    "Done": TaskStatus.CLOSED,
    "Review_AI_Assist": TaskStatus.AI_ASSIST,
    "Review_Date": TaskStatus.ON_TIME,
    "Review_Date_Boss_Approved": TaskStatus.ON_TIME,
    "Review_Date_Boss_Rejected": TaskStatus.ON_TIME,
    "Review_Date_Boss_Proposed": TaskStatus.ON_TIME,
    "Review_Scope": TaskStatus.ON_TIME,
    "Review_Scope_Clarified": TaskStatus.ON_TIME,
    "Review_Role": TaskStatus.ON_TIME,
    "Review_Stagnation": TaskStatus.SLOW_PROGRESS,
    "Review_Update": TaskStatus.ON_TIME,
    "Scheduled": TaskStatus.ON_TIME,
    "Scheduling_Conflict": TaskStatus.AI_ASSIST,
    "Cancelled": TaskStatus.CLOSED,
    "Reopened": TaskStatus.ON_TIME,
    "review_date": TaskStatus.ON_TIME,
    "review_date_boss_approved": TaskStatus.ON_TIME,
    "review_date_boss_rejected": TaskStatus.ON_TIME,
    "review_date_boss_proposed": TaskStatus.ON_TIME,
    "review_scope": TaskStatus.ON_TIME,
    "review_scope_clarified": TaskStatus.ON_TIME,
    "review_role": TaskStatus.ON_TIME,
    "pending_action": TaskStatus.SLOW_PROGRESS,
}


def normalize_status(status: Any) -> TaskStatus:
    """
    Map any stored or requested status onto the lifecycle enum.

    Empty and unknown values fall back to AI_ASSIST so the task lands in
    the "needs clarification" bucket instead of a state nobody watches.
    """
    if isinstance(status, TaskStatus):
        return status
    if not status:
        return TaskStatus.AI_ASSIST

    text = str(status).strip()
    try:
        return TaskStatus(text)
    except ValueError:
        pass

    return LEGACY_STATUS_MAP.get(text, TaskStatus.AI_ASSIST)


def is_known_status(status: Any) -> bool:
    """True if the value is a lifecycle status or a known legacy alias."""
    if isinstance(status, TaskStatus):
        return True
    if not status:
        return False
    text = str(status).strip()
    return text in TaskStatus._value2member_map_ or text in LEGACY_STATUS_MAP


def generate_task_id(now: Optional[datetime] = None) -> str:
    """Time-derived task id, e.g. TASK-20260118143005."""
    return f"TASK-{(now or datetime.now()).strftime('%Y%m%d%H%M%S')}"


class TaskDraft(BaseModel):
    """
    Input for creating a task.

    Captures what the caller knows; the orchestrator resolves free-text
    assignee and project references into identifiers.
    """

    task_name: str = Field(..., min_length=1)
    assignee_name: Optional[str] = None
    assignee_email: Optional[str] = None
    project: Optional[str] = None          # Free-text project reference
    project_tag: Optional[str] = None
    due_date: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: Optional[TaskStatus] = None
    context: Optional[str] = None          # Scope notes, kept hidden from staff
    source: str = "manual"                 # voice, email, meeting, manual

    @field_validator("task_name")
    @classmethod
    def validate_task_name(cls, v):
        stripped = v.strip()
        if not stripped:
            raise ValueError("task_name cannot be empty after stripping whitespace")
        return stripped

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v):
        if v is None or v == "":
            return None
        return normalize_status(v)

    def initial_parameters(self, created_at: datetime) -> str:
        """JSON snapshot of the creation parameters for later change detection."""
        return json.dumps({
            "dueDate": self.due_date,
            "assignee": self.assignee_email,
            "assigneeName": self.assignee_name,
            "taskName": self.task_name,
            "scope": self.context,
            "projectTag": self.project_tag,
            "createdAt": created_at.isoformat(),
        })

    def to_row(self, task_id: str, created_at: datetime) -> Dict[str, Any]:
        """Convert to a Tasks sheet row."""
        stamp = created_at.isoformat(timespec="seconds")
        return {
            "Task_ID": task_id,
            "Task_Name": self.task_name,
            "Status": (self.status or TaskStatus.AI_ASSIST).value,
            "Priority": self.priority.value,
            "Assignee_Email": self.assignee_email or "",
            "Assignee_Name": self.assignee_name or "",
            "Due_Date": self.due_date or "",
            "Project_Tag": self.project_tag or "",
            "Context_Hidden": self.context or "",
            "Source": self.source,
            "Created_Date": stamp,
            "Last_Updated": stamp,
            "Interaction_Log": "",
            "Processed_Message_IDs": "",
            "Initial_Parameters": self.initial_parameters(created_at),
        }
