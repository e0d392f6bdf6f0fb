"""
Tests for the fallback messenger.
"""

import pytest

from chief_of_staff.integrations.messaging import LoggingMessenger
from chief_of_staff.store import Collection


@pytest.mark.asyncio
async def test_records_intent_in_interaction_log(store, audit):
    messenger = LoggingMessenger(audit)

    await messenger.send_follow_up("TASK-20260101090000")
    await messenger.send_escalation("TASK-20260101090000")

    task = await store.get_by_key(Collection.TASKS, "TASK-20260101090000")
    assert "Follow-up email requested" in task["Interaction_Log"]
    assert "Boss escalation requested" in task["Interaction_Log"]


@pytest.mark.asyncio
async def test_without_audit_manager_only_logs(store):
    messenger = LoggingMessenger()

    await messenger.send_assignment_notice("TASK-20260101090000")

    task = await store.get_by_key(Collection.TASKS, "TASK-20260101090000")
    assert "Assignment email" not in (task.get("Interaction_Log") or "")
