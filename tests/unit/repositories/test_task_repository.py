"""
Unit tests for TaskRepository.

Runs against the in-memory record store seeded in conftest.
"""

import json
import pytest
from unittest.mock import patch

from chief_of_staff.models.task import TaskStatus
from chief_of_staff.repositories import TaskRepository
from chief_of_staff.store import Collection
from tests.conftest import FIXED_NOW

TASK_ID = "TASK-20260101090000"
LEGACY_TASK_ID = "TASK-20260102090000"


@pytest.fixture
def fixed_clock():
    with patch("chief_of_staff.repositories.tasks.get_local_now", return_value=FIXED_NOW):
        yield


# ============================================================
# READ TESTS
# ============================================================

class TestRead:
    """Tests for the read helpers."""

    @pytest.mark.asyncio
    async def test_get_normalizes_legacy_status(self, tasks, store):
        task = await tasks.get(LEGACY_TASK_ID)
        assert task["Status"] == "not_active"

        # the stored value is left as it was
        raw = await store.get_by_key(Collection.TASKS, LEGACY_TASK_ID)
        assert raw["Status"] == "Assigned"

    @pytest.mark.asyncio
    async def test_get_missing(self, tasks):
        assert await tasks.get("TASK-NOPE") is None
        assert await tasks.get("") is None

    @pytest.mark.asyncio
    async def test_get_by_status_includes_legacy_values(self, tasks):
        rows = await tasks.get_by_status(TaskStatus.NOT_ACTIVE)
        assert [r["Task_ID"] for r in rows] == [LEGACY_TASK_ID]

    @pytest.mark.asyncio
    async def test_get_by_assignee_ignores_case(self, tasks):
        rows = await tasks.get_by_assignee("PRIYA@example.com")
        assert [r["Task_ID"] for r in rows] == [TASK_ID]


# ============================================================
# CREATE TESTS
# ============================================================

class TestCreate:
    """Tests for TaskRepository.create."""

    @pytest.mark.asyncio
    async def test_create_fills_defaults(self, tasks, store, fixed_clock):
        task_id = await tasks.create({"Task_Name": "Book venue"})

        assert task_id == "TASK-20260105100000"
        task = await store.get_by_key(Collection.TASKS, task_id)
        assert task["Status"] == "ai_assist"
        assert task["Created_Date"] == "2026-01-05T10:00:00"
        assert task["Interaction_Log"] == "2026-01-05 10:00:00 - Task created: Book venue"

    @pytest.mark.asyncio
    async def test_same_second_ids_get_suffix(self, tasks, fixed_clock):
        first = await tasks.create({"Task_Name": "One"})
        second = await tasks.create({"Task_Name": "Two"})
        third = await tasks.create({"Task_Name": "Three"})

        assert first == "TASK-20260105100000"
        assert second == "TASK-20260105100000-2"
        assert third == "TASK-20260105100000-3"

    @pytest.mark.asyncio
    async def test_create_links_assignee_to_project(self, tasks, store, fixed_clock):
        await tasks.create({
            "Task_Name": "Ship beta build",
            "Assignee_Email": "jo@example.com",
            "Project_Tag": "BETA",
            "Status": "Assigned",
        })

        staff = await store.get_by_key(Collection.STAFF, "jo@example.com")
        project = await store.get_by_key(Collection.PROJECTS, "BETA")
        assert staff["Project_Tags"] == "BETA"
        assert project["Team_Members"] == "jo@example.com"

    @pytest.mark.asyncio
    async def test_create_normalizes_status(self, tasks, store, fixed_clock):
        task_id = await tasks.create({"Task_Name": "Legacy", "Status": "Done Pending Review"})
        task = await store.get_by_key(Collection.TASKS, task_id)
        assert task["Status"] == "completed"


# ============================================================
# UPDATE TESTS
# ============================================================

class TestUpdate:
    """Tests for TaskRepository.update."""

    @pytest.mark.asyncio
    async def test_update_writes_audit_entry(self, tasks, store):
        assert await tasks.update(TASK_ID, {"Priority": "high"}) is True

        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert task["Priority"] == "high"
        assert task["Interaction_Log"] == '2026-01-05 10:00:00 - Task updated: {"Priority": "high"}'

    @pytest.mark.asyncio
    async def test_update_normalizes_status(self, tasks, store):
        await tasks.update(TASK_ID, {"Status": "Done"})
        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert task["Status"] == "closed"
        assert '"Status": "closed"' in task["Interaction_Log"]

    @pytest.mark.asyncio
    async def test_interaction_log_writes_are_not_logged_again(self, tasks, store):
        await tasks.update(TASK_ID, {"Interaction_Log": "hand edited"})
        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert task["Interaction_Log"] == "hand edited"

    @pytest.mark.asyncio
    async def test_update_missing_task(self, tasks, store):
        assert await tasks.update("TASK-NOPE", {"Priority": "high"}) is False
        assert await store.all(Collection.ERROR_LOG) == []

    @pytest.mark.asyncio
    async def test_update_relinks_new_assignee(self, tasks, store):
        await tasks.update(TASK_ID, {"Assignee_Email": "john@example.com"})

        staff = await store.get_by_key(Collection.STAFF, "john@example.com")
        project = await store.get_by_key(Collection.PROJECTS, "ALPHA")
        assert staff["Project_Tags"] == "ALPHA"
        assert "john@example.com" in project["Team_Members"]

    @pytest.mark.asyncio
    async def test_link_failure_does_not_fail_update(self, tasks, store):
        """Test that an unknown assignee still lets the update succeed."""
        assert await tasks.update(TASK_ID, {"Assignee_Email": "ghost@example.com"}) is True
        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert task["Assignee_Email"] == "ghost@example.com"


# ============================================================
# REPLY TRACKING TESTS
# ============================================================

class TestProcessedMessages:
    """Tests for reply message id tracking."""

    @pytest.mark.asyncio
    async def test_duplicate_message_is_rejected(self, tasks):
        assert await tasks.mark_message_processed(TASK_ID, "msg-1") is True
        assert await tasks.mark_message_processed(TASK_ID, "msg-1") is False
        assert await tasks.get_processed_message_ids(TASK_ID) == ["msg-1"]

    @pytest.mark.asyncio
    async def test_processing_is_audited_once(self, tasks, store):
        await tasks.mark_message_processed(TASK_ID, "msg-1")
        await tasks.mark_message_processed(TASK_ID, "msg-1")

        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert task["Interaction_Log"].count("Message processed (Message ID: msg-1)") == 1

    @pytest.mark.asyncio
    async def test_only_recent_ids_are_kept(self, store, audit, staff):
        tasks = TaskRepository(store, audit, staff=staff, processed_ids_limit=3)

        for i in range(5):
            await tasks.mark_message_processed(TASK_ID, f"msg-{i}")

        task = await store.get_by_key(Collection.TASKS, TASK_ID)
        assert json.loads(task["Processed_Message_IDs"]) == ["msg-2", "msg-3", "msg-4"]

    @pytest.mark.asyncio
    async def test_missing_task(self, tasks):
        assert await tasks.mark_message_processed("TASK-NOPE", "msg-1") is False

    @pytest.mark.asyncio
    async def test_unparseable_cell_is_treated_as_empty(self, tasks, store):
        await store.update_by_key(Collection.TASKS, TASK_ID, {"Processed_Message_IDs": "not json"})
        assert await tasks.get_processed_message_ids(TASK_ID) == []
