"""Task repository using SQLAlchemy.

Tasks belong to a project and may have one level of subtasks
(``parent_task_id``). ``completed`` mirrors ``status == concluida`` so the
older completed flag and the status column never disagree.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from taskboard.attachments_repo import remove_files
from taskboard.db import session_scope
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import (
    PRIORITIES,
    STATUS_COMPLETED,
    STATUS_NOT_STARTED,
    TASK_STATUSES,
    Attachment,
    Comment,
    Project,
    Task,
    TaskLabel,
    TimeEntry,
)
from taskboard.timefmt import parse_date

logger = logging.getLogger(__name__)

_EDITABLE = ("title", "description", "due_date", "assignee_id", "priority", "status", "value", "actual_hours")


def _validate(data: Dict[str, Any], *, creating: bool) -> None:
    if creating or "title" in data:
        if not (data.get("title") or "").strip():
            raise ValidationError("Task title is required")
    if data.get("priority") is not None and data["priority"] not in PRIORITIES:
        raise ValidationError(f"Unknown priority: {data['priority']}")
    if data.get("status") is not None and data["status"] not in TASK_STATUSES:
        raise ValidationError(f"Unknown status: {data['status']}")


def _apply(t: Task, data: Dict[str, Any]) -> None:
    for key in _EDITABLE:
        if key not in data:
            continue
        value = data[key]
        if key == "due_date":
            value = parse_date(value)
        elif key == "title":
            value = value.strip()
        elif key == "description":
            value = (value or "").strip() or None
        elif key in ("priority", "status") and value is None:
            continue
        elif key == "actual_hours" and value is not None and int(value) < 0:
            raise ValidationError("actual_hours cannot be negative")
        setattr(t, key, value)
    if "status" in data and data["status"] is not None:
        t.completed = t.status == STATUS_COMPLETED
    elif "completed" in data:
        t.completed = bool(data["completed"])
        t.status = STATUS_COMPLETED if t.completed else STATUS_NOT_STARTED


def _next_position(s: Session, project_id: Optional[int], parent_task_id: Optional[int]) -> int:
    q = select(func.max(Task.position)).where(Task.project_id == project_id, Task.archived.is_(False))
    if parent_task_id is None:
        q = q.where(Task.parent_task_id.is_(None))
    else:
        q = q.where(Task.parent_task_id == parent_task_id)
    last = s.execute(q).scalar()
    return 0 if last is None else int(last) + 1


def _set_labels(s: Session, task_id: int, label_ids: Iterable[int]) -> None:
    s.execute(delete(TaskLabel).where(TaskLabel.task_id == task_id))
    for label_id in dict.fromkeys(int(i) for i in label_ids):
        s.add(TaskLabel(task_id=task_id, label_id=label_id))


def list_tasks(project_id: Optional[int] = None, archived: bool = False) -> List[Dict[str, Any]]:
    with session_scope("listing tasks") as s:
        q = select(Task).where(Task.archived.is_(archived))
        if project_id is not None:
            q = q.where(Task.project_id == project_id)
        if archived:
            q = q.order_by(Task.updated_at.desc(), Task.id)
        else:
            q = q.order_by(Task.position, Task.id)
        tasks = [t.to_dict() for t in s.execute(q).scalars().all()]

        ids = [t["id"] for t in tasks]
        links: Dict[int, List[int]] = {}
        if ids:
            for task_id, label_id in s.execute(
                select(TaskLabel.task_id, TaskLabel.label_id).where(TaskLabel.task_id.in_(ids))
            ).all():
                links.setdefault(task_id, []).append(label_id)
        for t in tasks:
            t["label_ids"] = sorted(links.get(t["id"], []))
        return tasks


def get_task(task_id: int) -> Optional[Dict[str, Any]]:
    with session_scope("loading task") as s:
        t = s.get(Task, task_id)
        if not t:
            return None
        d = t.to_dict()
        d["label_ids"] = sorted(
            s.execute(select(TaskLabel.label_id).where(TaskLabel.task_id == task_id)).scalars().all()
        )
        return d


def list_subtasks(parent_id: int) -> List[Dict[str, Any]]:
    with session_scope("listing subtasks") as s:
        q = select(Task).where(Task.parent_task_id == parent_id).order_by(Task.position, Task.id)
        return [t.to_dict() for t in s.execute(q).scalars().all()]


def create_task(data: Dict[str, Any], label_ids: Sequence[int] = ()) -> Dict[str, Any]:
    _validate(data, creating=True)
    project_id = data.get("project_id")
    parent_id = data.get("parent_task_id")
    with session_scope("creating task") as s:
        if project_id is not None and s.get(Project, project_id) is None:
            raise NotFoundError(f"Project {project_id} not found")
        if parent_id is not None:
            parent = s.get(Task, parent_id)
            if parent is None:
                raise NotFoundError(f"Parent task {parent_id} not found")
            if parent.parent_task_id is not None:
                raise ValidationError("Subtasks cannot have subtasks")
            if project_id is None:
                project_id = parent.project_id
            elif parent.project_id != project_id:
                raise ValidationError("Subtask must belong to the parent's project")

        t = Task(project_id=project_id, parent_task_id=parent_id, priority="medium", status=STATUS_NOT_STARTED)
        _apply(t, data)
        t.position = int(data["position"]) if data.get("position") is not None else _next_position(s, project_id, parent_id)
        s.add(t)
        s.flush()
        if label_ids:
            _set_labels(s, t.id, label_ids)
        s.commit()
        logger.info("Created task %s in project %s", t.id, project_id)
        d = t.to_dict()
        d["label_ids"] = sorted(set(int(i) for i in label_ids))
        return d


def update_task(task_id: int, data: Dict[str, Any], label_ids: Optional[Sequence[int]] = None) -> Dict[str, Any]:
    _validate(data, creating=False)
    with session_scope("updating task") as s:
        t = s.get(Task, task_id)
        if not t:
            raise NotFoundError(f"Task {task_id} not found")
        _apply(t, data)
        if label_ids is not None:
            _set_labels(s, task_id, label_ids)
        s.commit()
    return get_task(task_id)


def set_status(task_id: int, status: str) -> Dict[str, Any]:
    return update_task(task_id, {"status": status})


def toggle_completed(task_id: int) -> Dict[str, Any]:
    current = get_task(task_id)
    if current is None:
        raise NotFoundError(f"Task {task_id} not found")
    return update_task(task_id, {"completed": not current["completed"]})


def delete_task_rows(s: Session, task_ids: List[int]) -> List[str]:
    """Delete tasks, their subtasks and everything hanging off them.

    Runs inside the caller's session; returns attachment storage paths so
    the caller can remove the files after commit.
    """
    if not task_ids:
        return []
    sub_ids = s.execute(select(Task.id).where(Task.parent_task_id.in_(task_ids))).scalars().all()
    all_ids = list(dict.fromkeys(list(task_ids) + list(sub_ids)))

    paths = list(s.execute(select(Attachment.storage_path).where(Attachment.task_id.in_(all_ids))).scalars().all())
    for model in (TaskLabel, Comment, Attachment, TimeEntry):
        s.execute(delete(model).where(model.task_id.in_(all_ids)))
    s.execute(delete(Task).where(Task.id.in_(sub_ids)))
    s.execute(delete(Task).where(Task.id.in_(task_ids)))
    return paths


def delete_task(task_id: int) -> bool:
    with session_scope("deleting task") as s:
        if s.get(Task, task_id) is None:
            return False
        paths = delete_task_rows(s, [task_id])
        s.commit()
    remove_files(paths)
    logger.info("Deleted task %s", task_id)
    return True


def _set_archived(task_id: int, archived: bool) -> Dict[str, Any]:
    with session_scope("archiving task" if archived else "restoring task") as s:
        t = s.get(Task, task_id)
        if not t:
            raise NotFoundError(f"Task {task_id} not found")
        t.archived = archived
        for sub in s.execute(select(Task).where(Task.parent_task_id == task_id)).scalars().all():
            sub.archived = archived
        s.commit()
        return t.to_dict()


def archive_task(task_id: int) -> Dict[str, Any]:
    return _set_archived(task_id, True)


def restore_task(task_id: int) -> Dict[str, Any]:
    return _set_archived(task_id, False)


def _siblings(s: Session, project_id: int, parent_task_id: Optional[int], exclude_id: int) -> List[Task]:
    q = select(Task).where(Task.project_id == project_id, Task.archived.is_(False), Task.id != exclude_id)
    if parent_task_id is None:
        q = q.where(Task.parent_task_id.is_(None))
    else:
        q = q.where(Task.parent_task_id == parent_task_id)
    return list(s.execute(q.order_by(Task.position, Task.id)).scalars().all())


def move_task(task_id: int, project_id: int, position: int) -> Dict[str, Any]:
    """Move a task to ``position`` among its siblings in ``project_id``.

    Within the same project a subtask stays under its parent and is
    reordered among that parent's subtasks. Moving to another project makes
    a subtask top-level there; a main task takes its subtasks along. The
    siblings left behind and the new siblings are renumbered 0..n-1.
    """
    with session_scope("moving task") as s:
        t = s.get(Task, task_id)
        if not t:
            raise NotFoundError(f"Task {task_id} not found")
        if s.get(Project, project_id) is None:
            raise NotFoundError(f"Project {project_id} not found")

        if t.project_id != project_id:
            for index, task in enumerate(_siblings(s, t.project_id, t.parent_task_id, task_id)):
                task.position = index
            t.parent_task_id = None
            for sub in s.execute(select(Task).where(Task.parent_task_id == task_id)).scalars().all():
                sub.project_id = project_id
            t.project_id = project_id

        ordered = _siblings(s, project_id, t.parent_task_id, task_id)
        ordered.insert(max(0, min(int(position), len(ordered))), t)
        for index, task in enumerate(ordered):
            task.position = index
        s.commit()
        return t.to_dict()


def bulk_insert(projects: Sequence[Dict[str, Any]], tasks: Sequence[Dict[str, Any]], owner_id: Optional[str] = None) -> Tuple[int, int]:
    """Insert imported projects and tasks in one transaction.

    Any invalid row rolls back the whole import.
    """
    for row in projects:
        if not (row.get("title") or "").strip():
            raise ValidationError("Imported project without a title")
    for row in tasks:
        _validate(row, creating=True)

    with session_scope("importing data") as s:
        max_seq = int(s.execute(select(func.max(Project.sequence_number))).scalar() or 0)
        for row in projects:
            max_seq += 1
            s.add(Project(
                title=row["title"].strip(),
                position=int(row.get("position") or 0),
                owner_id=owner_id,
                sequence_number=max_seq,
            ))
        s.flush()

        known = set(s.execute(select(Project.id)).scalars().all())
        for row in tasks:
            project_id = row.get("project_id")
            if project_id is not None and project_id not in known:
                s.rollback()
                raise ValidationError(f"Imported task {row.get('title')!r} references unknown project {project_id}")
            t = Task(project_id=project_id, priority="medium", status=STATUS_NOT_STARTED, position=int(row.get("position") or 0))
            _apply(t, row)
            s.add(t)
        s.commit()
    logger.info("Imported %d projects and %d tasks", len(projects), len(tasks))
    return len(projects), len(tasks)
