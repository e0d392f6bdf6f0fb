"""
Outbound messaging collaborator.

Workflow actions hand off assignment notices, follow-ups and escalations
here. Delivery (Gmail drafts, templates, threading) belongs to the mail
integration; the engine only needs to know whether the hand-off raised.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..audit.interaction_log import AuditLogManager

logger = logging.getLogger(__name__)


class Messenger(ABC):
    """Interface consumed by workflow actions."""

    @abstractmethod
    async def send_assignment_notice(self, task_id: str) -> None:
        """Tell the assignee about a newly assigned task."""

    @abstractmethod
    async def send_follow_up(self, task_id: str) -> None:
        """Nudge the assignee for a progress update."""

    @abstractmethod
    async def send_escalation(self, task_id: str) -> None:
        """Alert the boss about a task that needs attention."""


class LoggingMessenger(Messenger):
    """
    Messenger used when no mail transport is configured.

    Records the intent on the operational log and, when an audit manager is
    provided, in the task's interaction log so the boss can see what would
    have gone out.
    """

    def __init__(self, audit: Optional["AuditLogManager"] = None):
        self.audit = audit

    async def _record(self, task_id: str, what: str) -> None:
        logger.info(f"{what} queued for task {task_id} (no mail transport configured)")
        if self.audit:
            await self.audit.append(task_id, f"{what} requested")

    async def send_assignment_notice(self, task_id: str) -> None:
        await self._record(task_id, "Assignment email")

    async def send_follow_up(self, task_id: str) -> None:
        await self._record(task_id, "Follow-up email")

    async def send_escalation(self, task_id: str) -> None:
        await self._record(task_id, "Boss escalation")
