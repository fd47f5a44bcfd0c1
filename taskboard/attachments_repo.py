"""Task attachments: metadata rows in the database, bytes on disk.

Files live under ``storage_dir/<task_id>/<uuid>_<file name>``; the stored
path is relative to ``storage_dir`` so the directory can be moved.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select

from taskboard.config import get_config
from taskboard.db import session_scope
from taskboard.errors import BackendError, NotFoundError, ValidationError
from taskboard.models import Attachment, Task

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 20 * 1024 * 1024
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(file_name: str) -> str:
    name = Path(file_name or "").name
    name = _UNSAFE.sub("_", name).strip("._")
    return name or "file"


def _root() -> Path:
    return get_config().storage_dir


def upload_attachment(
    task_id: int,
    file_name: str,
    data: bytes,
    content_type: Optional[str] = None,
    uploaded_by: Optional[str] = None,
) -> Dict[str, Any]:
    if not data:
        raise ValidationError("Empty file")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError("File is larger than 20 MB")

    relative = Path(str(task_id)) / f"{uuid.uuid4().hex}_{_safe_name(file_name)}"
    target = _root() / relative

    with session_scope("uploading attachment") as s:
        if s.get(Task, task_id) is None:
            raise NotFoundError(f"Task {task_id} not found")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.exception("Could not store attachment %s", target)
            raise BackendError("Could not store the file") from exc
        a = Attachment(
            task_id=task_id,
            file_name=Path(file_name or "file").name,
            storage_path=relative.as_posix(),
            content_type=content_type,
            size_bytes=len(data),
            uploaded_by=uploaded_by,
        )
        s.add(a)
        s.commit()
        logger.info("Stored attachment %s for task %s (%d bytes)", a.id, task_id, len(data))
        return a.to_dict()


def list_attachments(task_id: int) -> List[Dict[str, Any]]:
    with session_scope("listing attachments") as s:
        q = select(Attachment).where(Attachment.task_id == task_id).order_by(Attachment.created_at.desc(), Attachment.id.desc())
        return [a.to_dict() for a in s.execute(q).scalars().all()]


def download_attachment(attachment_id: int) -> Tuple[Dict[str, Any], bytes]:
    with session_scope("downloading attachment") as s:
        a = s.get(Attachment, attachment_id)
        if not a:
            raise NotFoundError(f"Attachment {attachment_id} not found")
        meta = a.to_dict()
    try:
        return meta, (_root() / meta["storage_path"]).read_bytes()
    except OSError as exc:
        logger.exception("Attachment %s missing from storage", attachment_id)
        raise NotFoundError("The stored file is missing") from exc


def delete_attachment(attachment_id: int) -> bool:
    with session_scope("deleting attachment") as s:
        a = s.get(Attachment, attachment_id)
        if not a:
            return False
        path = a.storage_path
        s.delete(a)
        s.commit()
    remove_files([path])
    return True


def remove_files(paths: Iterable[str]) -> None:
    """Remove stored files; a file already gone is not an error."""
    root = _root()
    for rel in paths:
        try:
            (root / rel).unlink()
        except FileNotFoundError:
            continue
        except OSError:
            logger.warning("Could not remove attachment file %s", rel, exc_info=True)
