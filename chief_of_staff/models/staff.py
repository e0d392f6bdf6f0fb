"""Staff and project records and their mirrored tag lists."""

from typing import List, Iterable
from dataclasses import dataclass, field


def split_tags(value) -> List[str]:
    """Split a comma-joined cell into trimmed, non-empty entries."""
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def join_tags(values: Iterable[str]) -> str:
    """Join entries back into the comma-separated cell format."""
    return ", ".join(values)


@dataclass
class StaffMember:
    """A row from the Staff sheet."""
    email: str
    name: str = ""
    role: str = "Team Member"
    project_tags: List[str] = field(default_factory=list)
    reliability_score: str = ""
    active_task_count: int = 0

    @classmethod
    def from_row(cls, row: dict) -> "StaffMember":
        count = row.get("Active_Task_Count")
        try:
            count = int(count) if count not in (None, "") else 0
        except (TypeError, ValueError):
            count = 0
        return cls(
            email=str(row.get("Email", "")).strip(),
            name=str(row.get("Name", "")).strip(),
            role=row.get("Role") or "Team Member",
            project_tags=split_tags(row.get("Project_Tags")),
            reliability_score=str(row.get("Reliability_Score", "")),
            active_task_count=count,
        )


@dataclass
class Project:
    """A row from the Projects sheet. Team members are lower-cased emails."""
    tag: str
    name: str = ""
    team_members: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> "Project":
        return cls(
            tag=str(row.get("Project_Tag", "")).strip(),
            name=str(row.get("Project_Name", "")).strip(),
            team_members=[m.lower() for m in split_tags(row.get("Team_Members"))],
        )
