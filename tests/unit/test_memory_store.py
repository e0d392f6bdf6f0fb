"""
Unit tests for InMemoryRecordStore and the record lock.
"""

import asyncio
import pytest

from chief_of_staff.store import (
    Collection,
    DuplicateRecordError,
    InMemoryRecordStore,
    StoreOperationError,
    normalize_key,
)


@pytest.fixture
def mem():
    return InMemoryRecordStore(seed={
        Collection.STAFF: [{"Name": "Jo Malone", "Email": "Jo@Example.com"}],
        Collection.TASKS: [{"Task_ID": "TASK-1", "Status": "on_time"}],
    })


class TestKeys:
    """Tests for key normalization."""

    def test_staff_keys_ignore_case(self):
        assert normalize_key(Collection.STAFF, " Jo@Example.com ") == "jo@example.com"

    def test_other_keys_keep_case(self):
        assert normalize_key(Collection.PROJECTS, " Alpha ") == "Alpha"

    @pytest.mark.asyncio
    async def test_lookup_by_email_any_case(self, mem):
        row = await mem.get_by_key(Collection.STAFF, "jo@example.COM")
        assert row["Name"] == "Jo Malone"


class TestCrud:
    """Tests for the four store operations."""

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, mem):
        row = await mem.get_by_key(Collection.TASKS, "TASK-1")
        row["Status"] = "closed"
        assert (await mem.get_by_key(Collection.TASKS, "TASK-1"))["Status"] == "on_time"

    @pytest.mark.asyncio
    async def test_update_overwrites_named_fields(self, mem):
        assert await mem.update_by_key(Collection.TASKS, "TASK-1", {"Priority": "high"}) is True
        assert await mem.get_by_key(Collection.TASKS, "TASK-1") == {
            "Task_ID": "TASK-1", "Status": "on_time", "Priority": "high",
        }

    @pytest.mark.asyncio
    async def test_update_missing(self, mem):
        assert await mem.update_by_key(Collection.TASKS, "TASK-2", {"Status": "closed"}) is False

    @pytest.mark.asyncio
    async def test_append_returns_sheet_row(self, mem):
        assert await mem.append(Collection.TASKS, {"Task_ID": "TASK-2"}) == 3

    @pytest.mark.asyncio
    async def test_append_duplicate(self, mem):
        with pytest.raises(DuplicateRecordError):
            await mem.append(Collection.STAFF, {"Name": "Other Jo", "Email": "jo@example.com"})

    @pytest.mark.asyncio
    async def test_error_log_is_append_only(self, mem):
        await mem.append(Collection.ERROR_LOG, {"Error_Message": "a"})
        await mem.append(Collection.ERROR_LOG, {"Error_Message": "a"})
        assert len(await mem.all(Collection.ERROR_LOG)) == 2

        with pytest.raises(StoreOperationError):
            await mem.get_by_key(Collection.ERROR_LOG, "a")

    @pytest.mark.asyncio
    async def test_find_keeps_store_order(self, mem):
        await mem.append(Collection.TASKS, {"Task_ID": "TASK-2", "Status": "on_time"})
        rows = await mem.find(Collection.TASKS, lambda r: r["Status"] == "on_time")
        assert [r["Task_ID"] for r in rows] == ["TASK-1", "TASK-2"]


class TestLock:
    """Tests for RecordStore.lock."""

    @pytest.mark.asyncio
    async def test_lock_serializes_read_modify_write(self, mem):
        await mem.update_by_key(Collection.TASKS, "TASK-1", {"Count": 0})

        async def increment():
            async with mem.lock(Collection.TASKS, "TASK-1"):
                row = await mem.get_by_key(Collection.TASKS, "TASK-1")
                await asyncio.sleep(0)
                await mem.update_by_key(Collection.TASKS, "TASK-1", {"Count": row["Count"] + 1})

        await asyncio.gather(*(increment() for _ in range(25)))

        assert (await mem.get_by_key(Collection.TASKS, "TASK-1"))["Count"] == 25

    @pytest.mark.asyncio
    async def test_staff_lock_key_ignores_case(self, mem):
        async with mem.lock(Collection.STAFF, "JO@example.com"):
            assert mem._locks[("staff", "jo@example.com")].locked()
