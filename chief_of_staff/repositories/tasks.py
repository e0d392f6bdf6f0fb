"""
Task repository.

`update` is the single mutation path for task fields: it stamps
Last_Updated, normalizes Status, records a "Task updated" entry in the
interaction log and keeps the assignee linked to the task's project.
"""

import json
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, TYPE_CHECKING

from config import settings
from ..models.task import TaskStatus, generate_task_id, normalize_status
from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import get_local_now, now_iso
from .staff import StaffRepository

if TYPE_CHECKING:
    from ..audit.interaction_log import AuditLogManager

logger = logging.getLogger(__name__)

# Fields whose writes are bookkeeping, not worth an audit line of their own
_UNLOGGED_FIELDS = ("Last_Updated",)


def _normalized(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    row["Status"] = normalize_status(row.get("Status")).value
    return row


class TaskRepository:
    """Repository for task operations."""

    def __init__(
        self,
        store: RecordStore,
        audit: "AuditLogManager",
        staff: Optional[StaffRepository] = None,
        processed_ids_limit: Optional[int] = None,
    ):
        self.store = store
        self.audit = audit
        self.staff = staff or StaffRepository(store)
        self.processed_ids_limit = processed_ids_limit or settings.processed_message_ids_limit

    async def get(self, task_id: str) -> Optional[Dict[str, Any]]:
        """Get a task by ID with its Status normalized."""
        if not task_id:
            return None
        return _normalized(await self.store.get_by_key(Collection.TASKS, task_id))

    async def get_all(self) -> List[Dict[str, Any]]:
        return [_normalized(row) for row in await self.store.all(Collection.TASKS)]

    async def get_by_status(self, status: TaskStatus) -> List[Dict[str, Any]]:
        """Tasks in a lifecycle status (legacy values count as their mapped status)."""
        wanted = normalize_status(status)
        rows = await self.store.find(
            Collection.TASKS, lambda t: normalize_status(t.get("Status")) == wanted
        )
        return [_normalized(row) for row in rows]

    async def get_by_assignee(self, email: str) -> List[Dict[str, Any]]:
        wanted = (email or "").strip().lower()
        rows = await self.store.find(
            Collection.TASKS,
            lambda t: str(t.get("Assignee_Email", "")).strip().lower() == wanted,
        )
        return [_normalized(row) for row in rows]

    async def _unique_task_id(self, now: datetime) -> str:
        base = generate_task_id(now)
        task_id = base
        suffix = 2
        while await self.store.get_by_key(Collection.TASKS, task_id):
            task_id = f"{base}-{suffix}"
            suffix += 1
        return task_id

    async def create(self, row: Dict[str, Any]) -> str:
        """
        Append a new task row and return its Task_ID.

        Fills in Task_ID, Status and timestamps when missing, logs
        "Task created" and links the assignee to the project.
        """
        record = dict(row)
        now = get_local_now()
        if not record.get("Task_ID"):
            record["Task_ID"] = await self._unique_task_id(now)
        record["Status"] = normalize_status(record.get("Status")).value
        record.setdefault("Created_Date", now.isoformat(timespec="seconds"))
        record.setdefault("Last_Updated", now.isoformat(timespec="seconds"))

        task_id = record["Task_ID"]
        await self.store.append(Collection.TASKS, record)
        await self.audit.append(task_id, f"Task created: {record.get('Task_Name', '')}")
        await self._link_assignee(task_id, record.get("Assignee_Email"), record.get("Project_Tag"))

        logger.info(f"Created task {task_id}")
        return task_id

    async def update(self, task_id: str, updates: Dict[str, Any]) -> bool:
        """
        Partially update a task.

        Writes to Interaction_Log itself are not logged again, which is what
        keeps audit writes from feeding back into the log.
        """
        fields = dict(updates)
        if "Status" in fields:
            fields["Status"] = normalize_status(fields["Status"]).value
        fields["Last_Updated"] = now_iso()

        ok = await self.store.update_by_key(Collection.TASKS, task_id, fields)
        if not ok:
            logger.warning(f"Task {task_id} not found for update")
            return False

        if "Interaction_Log" not in fields:
            logged = {k: v for k, v in fields.items() if k not in _UNLOGGED_FIELDS}
            await self.audit.append(task_id, f"Task updated: {json.dumps(logged, default=str)}")

        task = await self.get(task_id)
        if task:
            await self._link_assignee(task_id, task.get("Assignee_Email"), task.get("Project_Tag"))
        return True

    async def _link_assignee(self, task_id: str, email: Optional[str], project_tag: Optional[str]) -> None:
        if not email or not project_tag:
            return
        try:
            await self.staff.link_project(str(email), str(project_tag))
        except Exception as e:
            # Linking is bookkeeping; the task write already succeeded
            logger.error(f"Error linking staff to project for task {task_id}: {e}")

    # ==================== REPLY TRACKING ====================

    async def get_processed_message_ids(self, task_id: str) -> List[str]:
        """Reply message ids already handled for a task, oldest first."""
        task = await self.store.get_by_key(Collection.TASKS, task_id)
        return self._parse_ids(task, task_id)

    @staticmethod
    def _parse_ids(task: Optional[Dict[str, Any]], task_id: str) -> List[str]:
        raw = task.get("Processed_Message_IDs") if task else None
        if not raw:
            return []
        if isinstance(raw, list):
            return [str(i) for i in raw]
        try:
            return [str(i) for i in json.loads(raw)]
        except (TypeError, ValueError) as e:
            logger.error(f"Error parsing Processed_Message_IDs for {task_id}: {e}")
            return []

    async def mark_message_processed(self, task_id: str, message_id: str) -> bool:
        """
        Record a reply message id. Returns False if it was already processed.

        Only the most recent ids are kept so the cell does not grow forever.
        """
        async with self.store.lock(Collection.TASKS, task_id):
            task = await self.store.get_by_key(Collection.TASKS, task_id)
            if not task:
                return False

            ids = self._parse_ids(task, task_id)
            if message_id in ids:
                return False

            ids.append(message_id)
            await self.store.update_by_key(Collection.TASKS, task_id, {
                "Processed_Message_IDs": json.dumps(ids[-self.processed_ids_limit:]),
                "Last_Updated": now_iso(),
            })

        # The audit manager takes the task lock itself
        await self.audit.append(task_id, f"Message processed (Message ID: {message_id})")
        return True
