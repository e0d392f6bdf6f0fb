"""
Workflow action handlers.

Each ActionKind maps to one handler. Handlers raise ActionError when the
task or a required parameter is missing; the executor turns every
exception into a failed ActionResult so the rest of the list still runs.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..audit.interaction_log import AuditLogManager
from ..integrations.messaging import Messenger
from ..matching.resolver import EntityResolver
from ..models.task import TaskPriority, TaskStatus, is_known_status, normalize_status
from ..models.workflow import ActionKind, ActionResult, ActionSpec
from ..repositories.tasks import TaskRepository
from .exceptions import ActionError

logger = logging.getLogger(__name__)

Handler = Callable[[str, Mapping[str, Any]], Awaitable[str]]


def task_id_from(context: Mapping[str, Any]) -> Optional[str]:
    """The task an action applies to: context taskId, else context task's Task_ID."""
    task_id = context.get("taskId")
    if not task_id:
        task = context.get("task")
        if isinstance(task, Mapping):
            task_id = task.get("Task_ID")
    return str(task_id) if task_id else None


def _require(params: Mapping[str, Any], name: str, kind: ActionKind) -> Any:
    value = params.get(name)
    if value in (None, ""):
        raise ActionError(f"{kind.value} requires parameter '{name}'")
    return value


class ActionExecutor:
    """Runs one ActionSpec against the task named in the context."""

    def __init__(
        self,
        tasks: TaskRepository,
        audit: AuditLogManager,
        messenger: Messenger,
        resolver: Optional[EntityResolver] = None,
    ):
        self.tasks = tasks
        self.audit = audit
        self.messenger = messenger
        self.resolver = resolver

        self._handlers: Dict[ActionKind, Handler] = {
            ActionKind.SEND_ASSIGNMENT_NOTICE: self._handle_send_email,
            ActionKind.UPDATE_STATUS: self._handle_update_status,
            ActionKind.UPDATE_PRIORITY: self._handle_update_priority,
            ActionKind.LOG_INTERACTION: self._handle_log_interaction,
            ActionKind.SEND_FOLLOWUP: self._handle_send_followup,
            ActionKind.ESCALATE: self._handle_escalate,
            ActionKind.REASSIGN: self._handle_assign_task,
        }

    def supports(self, spec: ActionSpec) -> bool:
        return spec.action_kind in self._handlers

    async def execute(
        self,
        spec: ActionSpec,
        context: Mapping[str, Any],
        workflow_id: str = "",
    ) -> ActionResult:
        """Run one action. Never raises."""
        handler = self._handlers.get(spec.action_kind) if spec.action_kind else None
        if handler is None:
            logger.warning(f"Workflow {workflow_id}: Unknown action type: {spec.kind}")
            return ActionResult(type=spec.kind, executed=False, error=f"Unknown action type: {spec.kind}")

        try:
            task_id = task_id_from(context)
            if not task_id:
                raise ActionError(f"{spec.kind} needs a task id in the context")

            message = await handler(task_id, spec.params)
            logger.info(f"Workflow {workflow_id}: {spec.kind} on {task_id}: {message}")
            return ActionResult(type=spec.kind, executed=True, message=message)

        except Exception as e:
            logger.error(f"Error executing action {spec.kind} in workflow {workflow_id}: {e}")
            return ActionResult(type=spec.kind, executed=False, error=str(e))

    async def _update(self, task_id: str, fields: Dict[str, Any]) -> None:
        if not await self.tasks.update(task_id, fields):
            raise ActionError(f"Task {task_id} not found")

    # ==================== HANDLERS ====================

    async def _handle_send_email(self, task_id: str, params: Mapping[str, Any]) -> str:
        await self.messenger.send_assignment_notice(task_id)
        return "Email sent"

    async def _handle_update_status(self, task_id: str, params: Mapping[str, Any]) -> str:
        requested = _require(params, "status", ActionKind.UPDATE_STATUS)
        if not is_known_status(requested):
            raise ActionError(f"Unknown status: {requested}")
        status = normalize_status(requested)
        await self._update(task_id, {"Status": status.value})
        return f"Status updated to {status.value}"

    async def _handle_update_priority(self, task_id: str, params: Mapping[str, Any]) -> str:
        requested = _require(params, "priority", ActionKind.UPDATE_PRIORITY)
        try:
            priority = TaskPriority(str(requested).strip().lower())
        except ValueError:
            raise ActionError(f"Unknown priority: {requested}")
        await self._update(task_id, {"Priority": priority.value})
        return f"Priority updated to {priority.value}"

    async def _handle_log_interaction(self, task_id: str, params: Mapping[str, Any]) -> str:
        message = _require(params, "message", ActionKind.LOG_INTERACTION)
        if not await self.audit.append(task_id, str(message)):
            raise ActionError(f"Interaction log for {task_id} was not written")
        return "Interaction logged"

    async def _handle_send_followup(self, task_id: str, params: Mapping[str, Any]) -> str:
        await self.messenger.send_follow_up(task_id)
        return "Follow-up email sent"

    async def _handle_escalate(self, task_id: str, params: Mapping[str, Any]) -> str:
        await self.messenger.send_escalation(task_id)
        return "Boss alerted"

    async def _handle_assign_task(self, task_id: str, params: Mapping[str, Any]) -> str:
        email = str(params.get("assigneeEmail") or "").strip()
        name = str(params.get("assigneeName") or "").strip()

        if not email and params.get("assignee"):
            if not self.resolver:
                raise ActionError("assign_task by name needs an entity resolver")
            match = await self.resolver.resolve_staff_match(str(params["assignee"]))
            if not match:
                raise ActionError(f"Could not resolve assignee: {params['assignee']}")
            email = match.email
            name = name or match.name

        if not email:
            raise ActionError("assign_task requires parameter 'assigneeEmail' or 'assignee'")

        await self._update(task_id, {
            "Assignee_Email": email,
            "Assignee_Name": name,
            "Status": TaskStatus.NOT_ACTIVE.value,
        })
        await self.messenger.send_assignment_notice(task_id)
        return f"Task assigned to {email}"
