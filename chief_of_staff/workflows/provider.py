"""
Workflow definition providers.

The engine never reads the Workflows sheet itself; it asks a provider
for parsed definitions on every trigger, so edits to the sheet apply on
the next event.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Union

from ..models.workflow import WorkflowDefinition
from ..store.base import Collection, RecordStore
from .definitions import parse_definition
from .exceptions import WorkflowParseError

logger = logging.getLogger(__name__)


class WorkflowProvider(ABC):
    """Source of workflow definitions."""

    @abstractmethod
    async def load(self) -> List[WorkflowDefinition]:
        """Return every definition, active or not."""


class StoreWorkflowProvider(WorkflowProvider):
    """Loads definitions from the Workflows collection, skipping rows that fail to parse."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def load(self) -> List[WorkflowDefinition]:
        definitions = []
        for row in await self.store.all(Collection.WORKFLOWS):
            try:
                definitions.append(parse_definition(row))
            except WorkflowParseError as e:
                logger.error(f"Error parsing workflow {row.get('Workflow_ID') or row.get('Name')}: {e}")
        return definitions


class StaticWorkflowProvider(WorkflowProvider):
    """Fixed set of definitions, given parsed or as rows."""

    def __init__(self, definitions: Iterable[Union[WorkflowDefinition, Mapping[str, Any]]]):
        self._definitions = [
            d if isinstance(d, WorkflowDefinition) else parse_definition(d)
            for d in definitions
        ]

    async def load(self) -> List[WorkflowDefinition]:
        return list(self._definitions)
