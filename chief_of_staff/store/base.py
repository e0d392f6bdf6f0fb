"""
Record store interface.

The engine only ever talks to the tabular store through these four
operations plus a per-record lock. Every update is a whole-field overwrite
keyed by field (column) name.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]


class Collection(str, Enum):
    """Logical collections. Sheet names are mapped by the concrete store."""
    TASKS = "tasks"
    STAFF = "staff"
    PROJECTS = "projects"
    WORKFLOWS = "workflows"
    SCHEDULED_ACTIONS = "scheduled_actions"
    ERROR_LOG = "error_log"


KEY_FIELDS: Dict[Collection, Optional[str]] = {
    Collection.TASKS: "Task_ID",
    Collection.STAFF: "Email",
    Collection.PROJECTS: "Project_Tag",
    Collection.WORKFLOWS: "Workflow_ID",
    Collection.SCHEDULED_ACTIONS: "Action_ID",
    Collection.ERROR_LOG: None,  # append-only
}


def key_field(collection: Collection) -> Optional[str]:
    return KEY_FIELDS[Collection(collection)]


def normalize_key(collection: Collection, key: Any) -> str:
    """Keys compare trimmed; staff emails also compare case-insensitively."""
    text = str(key if key is not None else "").strip()
    if Collection(collection) == Collection.STAFF:
        return text.lower()
    return text


class RecordStore(ABC):
    """Keyed CRUD over the task, staff, project and workflow collections."""

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def lock(self, collection: Collection, key: Any) -> AsyncIterator[None]:
        """
        Serialize read-modify-write sequences on one record.

        Not re-entrant: do not call it again for the same key while holding it.
        """
        lock = self._locks[(Collection(collection).value, normalize_key(collection, key))]
        async with lock:
            yield

    @abstractmethod
    async def get_by_key(self, collection: Collection, key: Any) -> Optional[Record]:
        """Return a copy of the record, or None."""

    @abstractmethod
    async def find(self, collection: Collection, predicate: Predicate) -> List[Record]:
        """Return copies of all records matching the predicate, in store order."""

    @abstractmethod
    async def update_by_key(self, collection: Collection, key: Any, fields: Record) -> bool:
        """Overwrite the named fields. Returns False if the key does not exist."""

    @abstractmethod
    async def append(self, collection: Collection, record: Record) -> int:
        """Append a record and return its row reference."""

    async def all(self, collection: Collection) -> List[Record]:
        return await self.find(collection, lambda record: True)
