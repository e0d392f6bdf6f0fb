"""
In-memory record store.

Behaves like the Sheets store (header row offset in row numbers, copies on
read and write) so tests and local runs exercise the same contract.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from .base import Collection, Predicate, Record, RecordStore, key_field, normalize_key
from .exceptions import DuplicateRecordError, StoreOperationError

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Record store backed by plain lists of dicts."""

    def __init__(self, seed: Optional[Dict[Collection, List[Record]]] = None):
        super().__init__()
        self._rows: Dict[Collection, List[Record]] = {c: [] for c in Collection}
        for collection, records in (seed or {}).items():
            for record in records:
                self._insert(Collection(collection), record)

    def _index_of(self, collection: Collection, key: Any) -> Optional[int]:
        field = key_field(collection)
        if field is None:
            raise StoreOperationError(f"Collection {collection.value} has no key field")

        wanted = normalize_key(collection, key)
        if not wanted:
            return None

        for index, row in enumerate(self._rows[collection]):
            if normalize_key(collection, row.get(field)) == wanted:
                return index
        return None

    def _insert(self, collection: Collection, record: Record) -> int:
        field = key_field(collection)
        if field is not None and self._index_of(collection, record.get(field)) is not None:
            raise DuplicateRecordError(
                f"{collection.value} record {record.get(field)} already exists"
            )
        self._rows[collection].append(copy.deepcopy(record))
        # Row 1 is the header in the sheet this mirrors
        return len(self._rows[collection]) + 1

    async def get_by_key(self, collection: Collection, key: Any) -> Optional[Record]:
        collection = Collection(collection)
        index = self._index_of(collection, key)
        if index is None:
            return None
        return copy.deepcopy(self._rows[collection][index])

    async def find(self, collection: Collection, predicate: Predicate) -> List[Record]:
        collection = Collection(collection)
        return [copy.deepcopy(row) for row in self._rows[collection] if predicate(row)]

    async def update_by_key(self, collection: Collection, key: Any, fields: Record) -> bool:
        collection = Collection(collection)
        index = self._index_of(collection, key)
        if index is None:
            logger.warning(f"{collection.value} record {key} not found for update")
            return False
        self._rows[collection][index].update(copy.deepcopy(fields))
        return True

    async def append(self, collection: Collection, record: Record) -> int:
        return self._insert(Collection(collection), record)
