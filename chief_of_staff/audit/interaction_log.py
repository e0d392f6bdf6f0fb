"""
Audit log manager for task interaction logs.

Appends `timestamp - message` lines to a task's Interaction_Log under the
cell size ceiling. Writes go straight to the record store instead of through
TaskRepository.update, so an audit write never produces its own
"Task updated" entry.
"""

import logging
import traceback
from datetime import datetime
from typing import Callable, Optional

from ..repositories.errors import ErrorLogRepository, ErrorType
from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import format_log_timestamp, get_local_now
from .compaction import LogLimits, build_log, simplify_verbose_entries

logger = logging.getLogger(__name__)


class AuditLogManager:
    """Best-effort writer for Interaction_Log."""

    def __init__(
        self,
        store: RecordStore,
        error_log: Optional[ErrorLogRepository] = None,
        limits: Optional[LogLimits] = None,
        clock: Callable[[], datetime] = get_local_now,
    ):
        self.store = store
        self.error_log = error_log
        self.limits = limits or LogLimits.from_settings()
        self.clock = clock

    async def append(self, task_id: str, message: str) -> bool:
        """
        Append an entry to the task's interaction log.

        Never raises. Returns True if the entry was persisted; failures are
        reported on the logger and the Error_Log sheet only.
        """
        try:
            async with self.store.lock(Collection.TASKS, task_id):
                task = await self.store.get_by_key(Collection.TASKS, task_id)
                if not task:
                    logger.warning(f"Cannot log interaction, task {task_id} not found")
                    return False

                now = self.clock()
                timestamp = format_log_timestamp(now)
                entry = f"{timestamp} - {message}"
                current = str(task.get("Interaction_Log") or "")

                result = build_log(current, entry, timestamp, self.limits)
                if result.emergency:
                    logger.warning(f"Emergency truncation applied for task {task_id}")
                elif result.truncated:
                    logger.info(
                        f"Interaction_Log truncated for task {task_id}, "
                        f"preserved {result.preserved_tokens} correlation line(s)"
                    )

                return await self.store.update_by_key(Collection.TASKS, task_id, {
                    "Interaction_Log": result.text,
                    "Last_Updated": now.isoformat(timespec="seconds"),
                })

        except Exception as e:
            logger.error(f"Error in interaction log append for {task_id}: {e}", exc_info=True)
            await self._report(task_id, e)
            return False

    async def clean_task_log(self, task_id: str) -> bool:
        """Strip JSON payloads from old "Task updated" entries. Never raises."""
        try:
            async with self.store.lock(Collection.TASKS, task_id):
                task = await self.store.get_by_key(Collection.TASKS, task_id)
                if not task or not task.get("Interaction_Log"):
                    return False

                log = str(task["Interaction_Log"])
                cleaned = simplify_verbose_entries(log)
                if cleaned == log:
                    return False

                logger.info(f"Cleaned verbose log for task {task_id}: {len(log)} -> {len(cleaned)} chars")
                return await self.store.update_by_key(Collection.TASKS, task_id, {
                    "Interaction_Log": cleaned,
                    "Last_Updated": self.clock().isoformat(timespec="seconds"),
                })

        except Exception as e:
            logger.error(f"Error cleaning interaction log for {task_id}: {e}", exc_info=True)
            await self._report(task_id, e)
            return False

    async def _report(self, task_id: str, error: Exception) -> None:
        if not self.error_log:
            return
        await self.error_log.log_error(
            ErrorType.DATA_ERROR,
            "AuditLogManager.append",
            str(error),
            task_id=task_id,
            stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )
