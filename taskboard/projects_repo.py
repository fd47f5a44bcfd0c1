"""Project repository.

Projects are ordered on the board by ``position`` and identified to users
by ``sequence_number`` (``#12 - Website redesign``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select

from taskboard.attachments_repo import remove_files
from taskboard.db import session_scope
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import Project, Task
from taskboard.tasks_repo import delete_task_rows
from taskboard.timefmt import parse_date

logger = logging.getLogger(__name__)

_EDITABLE = (
    "title",
    "description",
    "analyst",
    "estimated_value",
    "actual_value",
    "estimated_end_date",
    "actual_end_date",
    "estimated_hours",
    "actual_hours",
)
_DATE_FIELDS = {"estimated_end_date", "actual_end_date"}
_DURATION_FIELDS = {"estimated_hours", "actual_hours"}  # seconds


def _apply(p: Project, data: Dict[str, Any]) -> None:
    for key in _EDITABLE:
        if key not in data:
            continue
        value = data[key]
        if key in _DATE_FIELDS:
            value = parse_date(value)
        elif key in _DURATION_FIELDS and value is not None and int(value) < 0:
            raise ValidationError(f"{key} cannot be negative")
        elif isinstance(value, str):
            value = value.strip() or None
        setattr(p, key, value)


def _next_position(s) -> int:
    last = s.execute(select(func.max(Project.position)).where(Project.archived.is_(False))).scalar()
    return 0 if last is None else int(last) + 1


def list_projects(archived: bool = False) -> List[Dict[str, Any]]:
    with session_scope("listing projects") as s:
        order = Project.sequence_number if archived else Project.position
        q = select(Project).where(Project.archived.is_(archived)).order_by(order, Project.id)
        return [p.to_dict() for p in s.execute(q).scalars().all()]


def get_project(project_id: int) -> Optional[Dict[str, Any]]:
    with session_scope("loading project") as s:
        p = s.get(Project, project_id)
        return p.to_dict() if p else None


def create_project(data: Dict[str, Any], owner_id: Optional[str] = None) -> Dict[str, Any]:
    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("Project title is required")
    with session_scope("creating project") as s:
        max_seq = s.execute(select(func.max(Project.sequence_number))).scalar() or 0
        p = Project(title=title, owner_id=owner_id, sequence_number=int(max_seq) + 1, position=_next_position(s))
        _apply(p, {k: v for k, v in data.items() if k != "title"})
        s.add(p)
        s.commit()
        logger.info("Created project #%s %s", p.sequence_number, title)
        return p.to_dict()


def update_project(project_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    if "title" in data and not (data.get("title") or "").strip():
        raise ValidationError("Project title is required")
    with session_scope("updating project") as s:
        p = s.get(Project, project_id)
        if not p:
            raise NotFoundError(f"Project {project_id} not found")
        _apply(p, data)
        s.commit()
        return p.to_dict()


def delete_project(project_id: int) -> bool:
    with session_scope("deleting project") as s:
        p = s.get(Project, project_id)
        if not p:
            return False
        task_ids = s.execute(select(Task.id).where(Task.project_id == project_id)).scalars().all()
        paths = delete_task_rows(s, list(task_ids))
        s.delete(p)
        s.commit()
    remove_files(paths)
    logger.info("Deleted project %s with %d tasks", project_id, len(task_ids))
    return True


def _set_archived(project_id: int, archived: bool) -> Dict[str, Any]:
    with session_scope("archiving project" if archived else "restoring project") as s:
        p = s.get(Project, project_id)
        if not p:
            raise NotFoundError(f"Project {project_id} not found")
        p.archived = archived
        if not archived:
            p.position = _next_position(s)
        s.commit()
        return p.to_dict()


def archive_project(project_id: int) -> Dict[str, Any]:
    return _set_archived(project_id, True)


def restore_project(project_id: int) -> Dict[str, Any]:
    return _set_archived(project_id, False)


def reorder_projects(ordered_ids: Sequence[int]) -> None:
    """Persist a new board order: positions become 0..n-1."""
    with session_scope("reordering projects") as s:
        for index, project_id in enumerate(ordered_ids):
            p = s.get(Project, project_id)
            if p is not None:
                p.position = index
        s.commit()
