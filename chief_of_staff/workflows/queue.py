"""
Delayed action queue.

In queue mode, actions declaring delay_hours are stored in the
Scheduled_Actions collection and run later by the scheduler. A row is
marked done or failed only after its action ran, so a crash in between
runs it again on the next drain.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Mapping

from ..models.workflow import ActionResult, ActionSpec
from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import get_local_now, parse_datetime
from .actions import task_id_from
from .definitions import parse_action

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_DONE = "done"
STATUS_FAILED = "failed"

ActionRunner = Callable[[ActionSpec, Mapping[str, Any], str], Awaitable[ActionResult]]


class DelayedActionQueue:
    """Persists delayed actions and runs them once due."""

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = get_local_now):
        self.store = store
        self.clock = clock

    async def schedule(self, workflow_id: str, spec: ActionSpec, context: Mapping[str, Any]) -> str:
        """Store the action and return its due time (ISO)."""
        now = self.clock()
        due_at = (now + timedelta(hours=spec.delay_hours)).isoformat(timespec="seconds")
        action_id = f"ACT-{uuid.uuid4().hex[:12]}"
        task_id = task_id_from(context) or ""

        # The task row is re-read when the action runs; only its id is stored
        stored = {key: value for key, value in context.items() if key != "task"}
        if task_id:
            stored["taskId"] = task_id

        await self.store.append(Collection.SCHEDULED_ACTIONS, {
            "Action_ID": action_id,
            "Workflow_ID": workflow_id,
            "Task_ID": task_id,
            "Action": json.dumps(spec.to_dict()),
            "Context": json.dumps(stored, default=str),
            "Due_At": due_at,
            "Status": STATUS_PENDING,
            "Result": "",
            "Created_At": now.isoformat(timespec="seconds"),
        })
        logger.info(f"Workflow {workflow_id}: scheduled {spec.kind} as {action_id} for {due_at}")
        return due_at

    def _is_due(self, row: Dict[str, Any], now: datetime) -> bool:
        if str(row.get("Status", "")).strip().lower() != STATUS_PENDING:
            return False
        due = parse_datetime(row.get("Due_At"))
        return due is not None and due <= now

    async def run_due(self, runner: ActionRunner) -> int:
        """Run every due pending action through `runner`. Returns how many ran."""
        now = self.clock()
        due = await self.store.find(Collection.SCHEDULED_ACTIONS, lambda r: self._is_due(r, now))
        ran = 0

        for row in due:
            action_id = row["Action_ID"]
            async with self.store.lock(Collection.SCHEDULED_ACTIONS, action_id):
                current = await self.store.get_by_key(Collection.SCHEDULED_ACTIONS, action_id)
                if not current or not self._is_due(current, now):
                    continue

                try:
                    spec = parse_action(json.loads(current["Action"]))
                    context = json.loads(current.get("Context") or "{}")
                    result = await runner(spec, context, str(current.get("Workflow_ID", "")))
                except Exception as e:
                    logger.error(f"Error running scheduled action {action_id}: {e}", exc_info=True)
                    result = ActionResult(type="unknown", executed=False, error=str(e))

                await self.store.update_by_key(Collection.SCHEDULED_ACTIONS, action_id, {
                    "Status": STATUS_DONE if result.executed else STATUS_FAILED,
                    "Result": result.model_dump_json(),
                })
                ran += 1

        if ran:
            logger.info(f"Ran {ran} scheduled action(s)")
        return ran
