from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import select

from taskboard.db import session_scope
from taskboard.errors import NotFoundError, PermissionDenied, ValidationError
from taskboard.models import Comment, Profile, Task

logger = logging.getLogger(__name__)


def list_comments(task_id: int) -> List[Dict[str, Any]]:
    """Comments for a task, newest first, with the author's name."""
    with session_scope("listing comments") as s:
        q = (
            select(Comment, Profile.name)
            .outerjoin(Profile, Profile.id == Comment.author_id)
            .where(Comment.task_id == task_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        out = []
        for comment, author_name in s.execute(q).all():
            d = comment.to_dict()
            d["author_name"] = author_name or "Unknown"
            out.append(d)
        return out


def add_comment(task_id: int, author_id: str, content: str) -> Dict[str, Any]:
    if not (content or "").strip():
        raise ValidationError("Comment cannot be empty")
    with session_scope("adding comment") as s:
        if s.get(Task, task_id) is None:
            raise NotFoundError(f"Task {task_id} not found")
        c = Comment(task_id=task_id, author_id=author_id, content=content.strip())
        s.add(c)
        s.commit()
        return c.to_dict()


def delete_comment(comment_id: int, requester_id: str) -> bool:
    with session_scope("deleting comment") as s:
        c = s.get(Comment, comment_id)
        if not c:
            return False
        if c.author_id != requester_id:
            raise PermissionDenied("Only the author can delete a comment")
        s.delete(c)
        s.commit()
        logger.info("Deleted comment %s", comment_id)
        return True
