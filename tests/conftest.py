"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from chief_of_staff.audit import AuditLogManager, LogLimits
from chief_of_staff.integrations.messaging import Messenger
from chief_of_staff.matching import EntityResolver
from chief_of_staff.repositories import (
    ErrorLogRepository,
    ProjectRepository,
    StaffRepository,
    TaskRepository,
)
from chief_of_staff.store import Collection, InMemoryRecordStore
from chief_of_staff.workflows import ActionExecutor


FIXED_NOW = datetime(2026, 1, 5, 10, 0, 0)


def staff_row(name, email, project_tags=""):
    return {
        "Name": name,
        "Email": email,
        "Role": "Team Member",
        "Reliability_Score": "",
        "Active_Task_Count": 0,
        "Project_Tags": project_tags,
        "Department": "",
        "Manager_Email": "",
        "Last_Updated": "",
    }


def task_row(task_id, name, status="on_time", email="", project="", **extra):
    row = {
        "Task_ID": task_id,
        "Task_Name": name,
        "Status": status,
        "Priority": "medium",
        "Assignee_Email": email,
        "Assignee_Name": "",
        "Due_Date": "",
        "Project_Tag": project,
        "Context_Hidden": "",
        "Created_Date": "2026-01-01T09:00:00",
        "Last_Updated": "2026-01-01T09:00:00",
        "Interaction_Log": "",
        "Processed_Message_IDs": "",
        "Initial_Parameters": "",
    }
    row.update(extra)
    return row


@pytest.fixture
def sample_staff():
    """Staff sheet rows."""
    return [
        staff_row("Anaaya Udhas", "anaaya@example.com"),
        staff_row("Jo Malone", "jo@example.com"),
        staff_row("John Carter", "john@example.com"),
        staff_row("Priya Sharma", "priya@example.com", project_tags="ALPHA"),
    ]


@pytest.fixture
def sample_projects():
    """Projects sheet rows."""
    return [
        {"Project_Tag": "ALPHA", "Project_Name": "Alpha Website Redesign", "Team_Members": "priya@example.com"},
        {"Project_Tag": "BETA", "Project_Name": "Beta Mobile App", "Team_Members": ""},
        {"Project_Tag": "OPS", "Project_Name": "Operations Team", "Team_Members": ""},
    ]


@pytest.fixture
def sample_tasks():
    """Tasks sheet rows."""
    return [
        task_row("TASK-20260101090000", "Draft launch plan", email="priya@example.com", project="ALPHA"),
        task_row("TASK-20260102090000", "Review vendor contract", status="Assigned", email="john@example.com"),
    ]


@pytest.fixture
def store(sample_staff, sample_projects, sample_tasks):
    """In-memory record store seeded with staff, projects and tasks."""
    return InMemoryRecordStore(seed={
        Collection.STAFF: sample_staff,
        Collection.PROJECTS: sample_projects,
        Collection.TASKS: sample_tasks,
    })


@pytest.fixture
def error_log(store):
    return ErrorLogRepository(store)


@pytest.fixture
def audit(store, error_log):
    """Audit log manager with a fixed clock."""
    return AuditLogManager(store, error_log=error_log, limits=LogLimits(), clock=lambda: FIXED_NOW)


@pytest.fixture
def projects(store):
    return ProjectRepository(store)


@pytest.fixture
def staff(store, projects):
    return StaffRepository(store, projects=projects)


@pytest.fixture
def tasks(store, audit, staff):
    return TaskRepository(store, audit, staff=staff)


@pytest.fixture
def resolver(store):
    return EntityResolver(
        store,
        phonetic_threshold=0.7,
        deletion_fallback=True,
        min_first_token=3,
        min_last_token=3,
        min_project_word=3,
    )


@pytest.fixture
def messenger():
    """Messenger double recording every call."""
    return AsyncMock(spec=Messenger)


@pytest.fixture
def executor(tasks, audit, messenger, resolver):
    return ActionExecutor(tasks, audit, messenger, resolver=resolver)
