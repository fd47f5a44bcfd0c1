"""Time entries logged against tasks.

Each entry's ``duration`` (seconds) is also added to the task's
``actual_hours`` column, which despite its name holds seconds.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import func, select

from taskboard.db import session_scope
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import Task, TimeEntry

logger = logging.getLogger(__name__)


def log_time(task_id: int, start: datetime, end: datetime) -> Dict[str, Any]:
    if start is None or end is None:
        raise ValidationError("Start and end time are required")
    if end <= start:
        raise ValidationError("End time must be after start time")
    duration = int((end - start).total_seconds())

    with session_scope("logging time") as s:
        t = s.get(Task, task_id)
        if t is None:
            raise NotFoundError(f"Task {task_id} not found")
        entry = TimeEntry(task_id=task_id, start_time=start, end_time=end, duration=duration)
        s.add(entry)
        t.actual_hours = int(t.actual_hours or 0) + duration
        s.commit()
        logger.info("Logged %ss on task %s", duration, task_id)
        return entry.to_dict()


def list_time_entries(task_id: int) -> List[Dict[str, Any]]:
    with session_scope("listing time entries") as s:
        q = select(TimeEntry).where(TimeEntry.task_id == task_id).order_by(TimeEntry.start_time.desc())
        return [e.to_dict() for e in s.execute(q).scalars().all()]


def total_seconds(task_id: int) -> int:
    with session_scope("summing time entries") as s:
        q = select(func.coalesce(func.sum(TimeEntry.duration), 0)).where(TimeEntry.task_id == task_id)
        return int(s.execute(q).scalar() or 0)


def delete_time_entry(entry_id: int) -> bool:
    with session_scope("deleting time entry") as s:
        entry = s.get(TimeEntry, entry_id)
        if not entry:
            return False
        t = s.get(Task, entry.task_id)
        if t is not None:
            t.actual_hours = max(0, int(t.actual_hours or 0) - int(entry.duration or 0))
        s.delete(entry)
        s.commit()
        return True
