"""
Task orchestrator.

Entry point for the three events the engine reacts to: a task is created,
a task's status changes, a reply to a task email has been classified.
Each writes through the repositories, records the event in the task's
interaction log and fires the matching workflow trigger. Workflow
failures are logged and never fail the event itself.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .audit.interaction_log import AuditLogManager
from .integrations.messaging import LoggingMessenger, Messenger
from .integrations.sheets import get_sheets_store
from .matching.resolver import EntityResolver
from .models.task import TaskDraft, TaskStatus, normalize_status
from .models.workflow import Trigger, WorkflowRunReport
from .repositories.errors import ErrorLogRepository
from .repositories.projects import ProjectRepository
from .repositories.staff import StaffRepository
from .repositories.tasks import TaskRepository
from .store.base import RecordStore
from .store.exceptions import StoreConnectionError
from .utils.datetime_utils import get_local_now
from .workflows.actions import ActionExecutor
from .workflows.engine import WorkflowEngine
from .workflows.provider import StoreWorkflowProvider, WorkflowProvider
from .workflows.queue import DelayedActionQueue

logger = logging.getLogger(__name__)


class TaskOrchestrator:
    """Turns task events into repository writes and workflow triggers."""

    def __init__(
        self,
        tasks: TaskRepository,
        engine: WorkflowEngine,
        resolver: EntityResolver,
        audit: AuditLogManager,
    ):
        self.tasks = tasks
        self.engine = engine
        self.resolver = resolver
        self.audit = audit

    async def _fire(self, trigger: Trigger, context: Dict[str, Any]) -> List[WorkflowRunReport]:
        try:
            reports = await self.engine.evaluate_and_run(trigger.value, context)
        except Exception as e:
            logger.error(f"Error running workflows for {trigger.value} on {context.get('taskId')}: {e}", exc_info=True)
            return []
        if reports:
            logger.info(f"{trigger.value} on {context.get('taskId')} ran {len(reports)} workflow(s)")
        return reports

    async def create_task(self, data: Union[TaskDraft, Dict[str, Any]]) -> str:
        """
        Create a task and fire task_created. Returns the new Task_ID.

        A free-text assignee name or project is resolved to an email or tag
        when only the text is given. A name that does not resolve leaves the
        task in ai_assist for the boss to clarify.
        """
        draft = data if isinstance(data, TaskDraft) else TaskDraft(**data)

        email = draft.assignee_email
        if not email and draft.assignee_name:
            match = await self.resolver.resolve_staff_match(draft.assignee_name)
            if match:
                email = match.email

        project_tag = draft.project_tag
        if not project_tag and draft.project:
            project_tag = await self.resolver.resolve_project_by_text(draft.project)

        unresolved = bool(draft.assignee_name) and not email
        status = TaskStatus.AI_ASSIST if unresolved else (draft.status or TaskStatus.AI_ASSIST)
        draft = draft.model_copy(update={
            "assignee_email": email,
            "project_tag": project_tag,
            "status": status,
        })

        task_id = await self.tasks.create(draft.to_row(task_id="", created_at=get_local_now()))
        if unresolved:
            await self.audit.append(
                task_id, f'Assignee "{draft.assignee_name}" not matched to staff, needs clarification'
            )

        task = await self.tasks.get(task_id)
        await self._fire(Trigger.TASK_CREATED, {
            "taskId": task_id,
            "task": task,
            "status": task["Status"] if task else status.value,
        })
        return task_id

    async def change_status(
        self,
        task_id: str,
        status: Union[TaskStatus, str],
        reason: Optional[str] = None,
    ) -> List[WorkflowRunReport]:
        """Set a task's status and fire status_changed."""
        task = await self.tasks.get(task_id)
        if not task:
            logger.warning(f"Cannot change status, task {task_id} not found")
            return []

        previous = task["Status"]
        new_status = normalize_status(status)
        await self.tasks.update(task_id, {"Status": new_status.value})
        if reason:
            await self.audit.append(task_id, f"Status changed from {previous} to {new_status.value}: {reason}")

        return await self._fire(Trigger.STATUS_CHANGED, {
            "taskId": task_id,
            "task": await self.tasks.get(task_id),
            "status": new_status.value,
            "previousStatus": previous,
            "reason": reason,
        })

    async def handle_reply_classified(
        self,
        task_id: str,
        classification: str,
        message_id: Optional[str] = None,
        thread_id: Optional[str] = None,
    ) -> List[WorkflowRunReport]:
        """
        Record a classified reply and fire reply_classified.

        A message id that was already processed is ignored, so re-polling a
        mailbox does not run workflows twice.
        """
        if not await self.tasks.get(task_id):
            logger.warning(f"Cannot handle reply, task {task_id} not found")
            return []

        if message_id and not await self.tasks.mark_message_processed(task_id, message_id):
            logger.info(f"Message {message_id} already processed for task {task_id}")
            return []

        ids = []
        if message_id:
            ids.append(f"Message ID: {message_id}")
        if thread_id:
            ids.append(f"Thread ID: {thread_id}")
        suffix = f" ({', '.join(ids)})" if ids else ""
        await self.audit.append(task_id, f"Reply classified as {classification}{suffix}")

        return await self._fire(Trigger.REPLY_CLASSIFIED, {
            "taskId": task_id,
            "task": await self.tasks.get(task_id),
            "classification": classification,
            "messageId": message_id,
            "threadId": thread_id,
        })


def build_orchestrator(
    store: RecordStore,
    messenger: Optional[Messenger] = None,
    provider: Optional[WorkflowProvider] = None,
    delayed_action_mode: Optional[str] = None,
) -> TaskOrchestrator:
    """Wire repositories, resolver, audit log and engine over one store."""
    errors = ErrorLogRepository(store)
    audit = AuditLogManager(store, error_log=errors)
    projects = ProjectRepository(store)
    staff = StaffRepository(store, projects=projects)
    tasks = TaskRepository(store, audit, staff=staff)
    resolver = EntityResolver(store)

    executor = ActionExecutor(
        tasks,
        audit,
        messenger or LoggingMessenger(audit),
        resolver=resolver,
    )
    engine = WorkflowEngine(
        provider or StoreWorkflowProvider(store),
        executor,
        queue=DelayedActionQueue(store),
        delayed_action_mode=delayed_action_mode,
    )
    return TaskOrchestrator(tasks, engine, resolver, audit)


async def create_sheets_orchestrator(messenger: Optional[Messenger] = None) -> TaskOrchestrator:
    """Orchestrator over the configured Google spreadsheet."""
    store = get_sheets_store()
    if not await store.initialize():
        raise StoreConnectionError("Google Sheets is not available")
    return build_orchestrator(store, messenger=messenger)
