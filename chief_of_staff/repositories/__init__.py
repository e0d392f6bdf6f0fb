"""
Repository classes over the record store.

Each repository handles reads and writes for its collection.
"""

from .errors import ErrorLogRepository, ErrorType
from .projects import ProjectRepository
from .staff import StaffRepository
from .tasks import TaskRepository

__all__ = [
    "ErrorLogRepository",
    "ErrorType",
    "ProjectRepository",
    "StaffRepository",
    "TaskRepository",
]
