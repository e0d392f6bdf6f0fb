"""
Project repository.

Projects group tasks and carry the mirror side of the staff/project link
(Team_Members).
"""

import logging
from typing import Optional, List, Dict, Any

from ..models.staff import Project
from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Repository for project operations."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get(self, project_tag: str) -> Optional[Dict[str, Any]]:
        """Get project row by tag."""
        if not project_tag:
            return None
        return await self.store.get_by_key(Collection.PROJECTS, project_tag)

    async def get_all(self) -> List[Dict[str, Any]]:
        """Get all project rows."""
        return await self.store.all(Collection.PROJECTS)

    async def get_project(self, project_tag: str) -> Optional[Project]:
        """Get project as a typed record."""
        row = await self.get(project_tag)
        return Project.from_row(row) if row else None

    async def create(self, project_tag: str, project_name: str) -> bool:
        """Create a project. Returns False if the tag is already taken."""
        if await self.get(project_tag):
            logger.warning(f"Project {project_tag} already exists")
            return False

        await self.store.append(Collection.PROJECTS, {
            "Project_Tag": project_tag.strip(),
            "Project_Name": project_name.strip(),
            "Team_Members": "",
            "Last_Updated": now_iso(),
        })
        logger.info(f"Created project: {project_tag}")
        return True

    async def update(self, project_tag: str, updates: Dict[str, Any]) -> bool:
        """Update a project."""
        return await self.store.update_by_key(Collection.PROJECTS, project_tag, dict(updates))
