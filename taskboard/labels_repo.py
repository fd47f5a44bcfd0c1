from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select

from taskboard.db import session_scope
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import Label, Task, TaskLabel
from taskboard.validators import is_hex_color


def list_labels() -> List[Dict[str, Any]]:
    with session_scope("listing labels") as s:
        return [lb.to_dict() for lb in s.execute(select(Label).order_by(Label.name)).scalars().all()]


def create_label(name: str, color: str, owner_id: Optional[str] = None) -> Dict[str, Any]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Label name is required")
    if not is_hex_color(color):
        raise ValidationError(f"Invalid color: {color}")
    with session_scope("creating label") as s:
        lb = Label(name=name, color=color, owner_id=owner_id)
        s.add(lb)
        s.commit()
        return lb.to_dict()


def delete_label(label_id: int) -> bool:
    with session_scope("deleting label") as s:
        lb = s.get(Label, label_id)
        if not lb:
            return False
        s.execute(delete(TaskLabel).where(TaskLabel.label_id == label_id))
        s.delete(lb)
        s.commit()
        return True


def labels_for_task(task_id: int) -> List[Dict[str, Any]]:
    with session_scope("loading task labels") as s:
        q = (
            select(Label)
            .join(TaskLabel, TaskLabel.label_id == Label.id)
            .where(TaskLabel.task_id == task_id)
            .order_by(Label.name)
        )
        return [lb.to_dict() for lb in s.execute(q).scalars().all()]


def set_task_labels(task_id: int, label_ids: Sequence[int]) -> List[Dict[str, Any]]:
    with session_scope("updating task labels") as s:
        if s.get(Task, task_id) is None:
            raise NotFoundError(f"Task {task_id} not found")
        s.execute(delete(TaskLabel).where(TaskLabel.task_id == task_id))
        for label_id in dict.fromkeys(int(i) for i in label_ids):
            s.add(TaskLabel(task_id=task_id, label_id=label_id))
        s.commit()
    return labels_for_task(task_id)
