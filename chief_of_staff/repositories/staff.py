"""
Staff repository.

Owns the staff <-> project link. Both sides store a comma-joined list
(Staff.Project_Tags and Project.Team_Members) and every link or unlink
writes both under the two record locks, always taken staff first.
"""

import logging
from typing import Optional, List, Dict, Any

from ..models.staff import StaffMember, split_tags, join_tags
from ..models.task import ACTIVE_STATUSES, TaskStatus, normalize_status
from ..store.base import Collection, RecordStore
from ..utils.datetime_utils import now_iso, parse_datetime
from .projects import ProjectRepository

logger = logging.getLogger(__name__)

DATE_CHANGE_MARKER = "requested date change"


class StaffRepository:
    """Repository for staff operations."""

    def __init__(self, store: RecordStore, projects: Optional[ProjectRepository] = None):
        self.store = store
        self.projects = projects or ProjectRepository(store)

    async def get(self, email: str) -> Optional[Dict[str, Any]]:
        """Get staff row by email."""
        if not email:
            return None
        return await self.store.get_by_key(Collection.STAFF, email)

    async def get_all(self) -> List[Dict[str, Any]]:
        """Get all staff rows."""
        return await self.store.all(Collection.STAFF)

    async def get_member(self, email: str) -> Optional[StaffMember]:
        row = await self.get(email)
        return StaffMember.from_row(row) if row else None

    async def create(
        self,
        name: str,
        email: str,
        role: str = "Team Member",
        department: str = "",
        manager_email: str = "",
    ) -> bool:
        """
        Create a staff member.

        Returns False when name or email is missing or the email is taken.
        A duplicate name with a different email is allowed but logged, since
        the resolver will then need the boss to pick one.
        """
        if not name or not email:
            logger.error("Name and email are required to create staff member")
            return False

        if await self.get(email):
            logger.warning(f"Staff with email {email} already exists")
            return False

        name = name.strip()
        for row in await self.get_all():
            if str(row.get("Name", "")).strip().lower() == name.lower():
                logger.warning(f'Staff with name "{name}" already exists with email {row.get("Email")}')
                break

        await self.store.append(Collection.STAFF, {
            "Name": name,
            "Email": email.strip().lower(),
            "Role": role,
            "Reliability_Score": "",
            "Active_Task_Count": 0,
            "Project_Tags": "",
            "Department": department,
            "Manager_Email": manager_email,
            "Last_Updated": now_iso(),
        })
        logger.info(f"Created new staff member: {name} ({email})")
        return True

    async def update(self, email: str, updates: Dict[str, Any]) -> bool:
        """Update staff fields, stamping Last_Updated."""
        fields = dict(updates)
        fields["Last_Updated"] = now_iso()
        return await self.store.update_by_key(Collection.STAFF, email, fields)

    # ==================== PROJECT LINKS ====================

    async def link_project(self, staff_email: str, project_tag: str) -> bool:
        """
        Add a staff member to a project on both sides.

        Returns False (and writes nothing) if either record is missing.
        """
        if not staff_email or not project_tag:
            logger.error("Staff email and project tag are required")
            return False

        async with self.store.lock(Collection.STAFF, staff_email):
            async with self.store.lock(Collection.PROJECTS, project_tag):
                staff = await self.get(staff_email)
                project = await self.projects.get(project_tag)
                if not staff:
                    logger.error(f"Staff member with email {staff_email} not found")
                    return False
                if not project:
                    logger.error(f"Project with tag {project_tag} not found")
                    return False

                tag = str(project["Project_Tag"]).strip()
                email = str(staff["Email"]).strip().lower()
                old_tags = split_tags(staff.get("Project_Tags"))
                members = [m.lower() for m in split_tags(project.get("Team_Members"))]

                if tag not in old_tags:
                    if not await self.update(email, {"Project_Tags": join_tags(old_tags + [tag])}):
                        return False
                    logger.info(f"Added project {tag} to staff {email}")

                if email not in members:
                    try:
                        ok = await self.projects.update(tag, {"Team_Members": join_tags(members + [email])})
                    except Exception:
                        ok = False
                        logger.error(f"Failed to add {email} to project {tag}", exc_info=True)
                    if not ok:
                        await self._restore_tags(email, old_tags)
                        return False
                    logger.info(f"Added staff {email} to project {tag}")

                return True

    async def unlink_project(self, staff_email: str, project_tag: str) -> bool:
        """Remove a staff member from a project on both sides."""
        if not staff_email or not project_tag:
            logger.error("Staff email and project tag are required")
            return False

        async with self.store.lock(Collection.STAFF, staff_email):
            async with self.store.lock(Collection.PROJECTS, project_tag):
                staff = await self.get(staff_email)
                project = await self.projects.get(project_tag)
                if not staff or not project:
                    return False

                tag = str(project["Project_Tag"]).strip()
                email = str(staff["Email"]).strip().lower()
                old_tags = split_tags(staff.get("Project_Tags"))
                members = [m.lower() for m in split_tags(project.get("Team_Members"))]

                if not await self.update(email, {"Project_Tags": join_tags(t for t in old_tags if t != tag)}):
                    return False

                try:
                    ok = await self.projects.update(
                        tag, {"Team_Members": join_tags(m for m in members if m != email)}
                    )
                except Exception:
                    ok = False
                    logger.error(f"Failed to remove {email} from project {tag}", exc_info=True)
                if not ok:
                    await self._restore_tags(email, old_tags)
                    return False

                logger.info(f"Removed staff {email} from project {tag}")
                return True

    async def _restore_tags(self, email: str, tags: List[str]) -> None:
        logger.warning(f"Rolling back project tags for {email}")
        await self.update(email, {"Project_Tags": join_tags(tags)})

    async def get_staff_projects(self, staff_email: str) -> List[str]:
        """Project tags a staff member is working on."""
        staff = await self.get(staff_email)
        return split_tags(staff.get("Project_Tags")) if staff else []

    async def get_project_staff(self, project_tag: str) -> List[Dict[str, Any]]:
        """Staff rows for every team member of a project."""
        project = await self.projects.get(project_tag)
        if not project:
            return []

        members = []
        for email in split_tags(project.get("Team_Members")):
            staff = await self.get(email)
            if staff:
                members.append(staff)
        return members

    async def sync_relationships(self) -> int:
        """Link every task's assignee to the task's project. Returns links created."""
        created = 0
        tasks = await self.store.find(
            Collection.TASKS,
            lambda t: bool(t.get("Assignee_Email")) and bool(t.get("Project_Tag")),
        )
        for task in tasks:
            email = str(task["Assignee_Email"]).strip()
            tag = str(task["Project_Tag"]).strip()
            if tag in await self.get_staff_projects(email):
                continue
            if await self.link_project(email, tag):
                created += 1

        logger.info(f"Synced {created} staff-project relationships from tasks")
        return created

    # ==================== METRICS ====================

    async def _tasks_for(self, email: str) -> List[Dict[str, Any]]:
        wanted = email.strip().lower()
        return await self.store.find(
            Collection.TASKS,
            lambda t: str(t.get("Assignee_Email", "")).strip().lower() == wanted,
        )

    async def active_task_count(self, email: str) -> int:
        """Tasks assigned to the email that are still in flight."""
        tasks = await self._tasks_for(email)
        return sum(1 for t in tasks if normalize_status(t.get("Status")) in ACTIVE_STATUSES)

    async def reliability_score(self, email: str) -> int:
        """
        Score 0-100 for how dependable a staff member has been.

        Base is the share of closed tasks finished by their due date; each
        requested date change costs 5 points and each task sitting in slow
        progress costs 10. No tasks scores 100, an error scores 50.
        """
        try:
            tasks = await self._tasks_for(email)
            if not tasks:
                return 100

            completed_on_time = 0
            total_completed = 0
            extensions = 0
            stagnations = 0

            for task in tasks:
                status = normalize_status(task.get("Status"))
                if status == TaskStatus.CLOSED:
                    total_completed += 1
                    due = parse_datetime(task.get("Due_Date"))
                    done = parse_datetime(task.get("Last_Updated"))
                    if due and done and done <= due:
                        completed_on_time += 1

                if DATE_CHANGE_MARKER in str(task.get("Interaction_Log") or ""):
                    extensions += 1

                if status == TaskStatus.SLOW_PROGRESS:
                    stagnations += 1

            score = (completed_on_time / total_completed) * 100 if total_completed else 100.0
            score -= extensions * 5
            score -= stagnations * 10
            return round(max(0.0, min(100.0, score)))

        except Exception as e:
            logger.error(f"Error calculating reliability score for {email}: {e}", exc_info=True)
            return 50

    async def refresh_metrics(self) -> int:
        """Recompute Reliability_Score and Active_Task_Count for all staff."""
        updated = 0
        for row in await self.get_all():
            email = row.get("Email")
            if not email:
                continue
            await self.update(email, {
                "Reliability_Score": await self.reliability_score(email),
                "Active_Task_Count": await self.active_task_count(email),
            })
            updated += 1

        logger.info(f"Refreshed metrics for {updated} staff member(s)")
        return updated
