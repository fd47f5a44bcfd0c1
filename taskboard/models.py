"""SQLAlchemy models for the project board.

Dates are returned from ``to_dict`` as ISO strings so pages and the
aggregation layer only ever handle plain dicts.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base


Base = declarative_base()

STATUS_NOT_STARTED = "nao_iniciada"
STATUS_IN_PROGRESS = "em_andamento"
STATUS_COMPLETED = "concluida"
TASK_STATUSES = (STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_STARTED)

PRIORITIES = ("high", "medium", "low")

LAYOUT_TYPES = ("default", "compact", "comfortable")


def _utcnow() -> datetime:
    return datetime.utcnow()


def _iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value else None


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(256), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(256), nullable=True)
    reset_token = Column(String(128), nullable=True, index=True)
    reset_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": _iso(self.created_at),
        }


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("profile_id", "role_id", name="uq_user_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sequence_number = Column(Integer, nullable=False, default=1)
    title = Column(String(512), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    owner_id = Column(String(36), nullable=True)
    description = Column(Text, nullable=True)
    analyst = Column(String(256), nullable=True)
    estimated_value = Column(Float, nullable=True)
    actual_value = Column(Float, nullable=True)
    estimated_end_date = Column(Date, nullable=True)
    actual_end_date = Column(Date, nullable=True)
    estimated_hours = Column(Integer, nullable=True)  # seconds
    actual_hours = Column(Integer, nullable=True)  # seconds
    archived = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sequence_number": self.sequence_number,
            "title": self.title,
            "position": self.position,
            "owner_id": self.owner_id,
            "description": self.description,
            "analyst": self.analyst,
            "estimated_value": self.estimated_value,
            "actual_value": self.actual_value,
            "estimated_end_date": _iso(self.estimated_end_date),
            "actual_end_date": _iso(self.actual_end_date),
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "archived": bool(self.archived),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    parent_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    assignee_id = Column(String(36), nullable=True)
    priority = Column(String(16), nullable=False, default="medium")
    status = Column(String(32), nullable=False, default=STATUS_NOT_STARTED, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    value = Column(Float, nullable=True)
    actual_hours = Column(Integer, nullable=True)  # seconds
    archived = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "parent_task_id": self.parent_task_id,
            "title": self.title,
            "description": self.description,
            "due_date": _iso(self.due_date),
            "position": self.position,
            "assignee_id": self.assignee_id,
            "priority": self.priority,
            "status": self.status,
            "completed": bool(self.completed),
            "value": self.value,
            "actual_hours": self.actual_hours,
            "archived": bool(self.archived),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Label(Base):
    __tablename__ = "labels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    color = Column(String(16), nullable=False)
    owner_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "owner_id": self.owner_id,
            "created_at": _iso(self.created_at),
        }


class TaskLabel(Base):
    __tablename__ = "task_labels"
    __table_args__ = (UniqueConstraint("task_id", "label_id", name="uq_task_label"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    label_id = Column(Integer, ForeignKey("labels.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(36), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "author_id": self.author_id,
            "content": self.content,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(512), nullable=False)
    storage_path = Column(String(1024), nullable=False)
    content_type = Column(String(128), nullable=True)
    size_bytes = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
            "uploaded_by": self.uploaded_by,
            "created_at": _iso(self.created_at),
        }


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration": self.duration,
            "created_at": _iso(self.created_at),
        }


class SystemSettings(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_name = Column(String(256), nullable=False, default="Project Board")
    site_description = Column(Text, nullable=True)
    primary_color = Column(String(16), nullable=False, default="#0EA5E9")
    system_font_color = Column(String(16), nullable=False, default="#000000")
    logo_url = Column(String(1024), nullable=True)
    favicon_url = Column(String(1024), nullable=True)
    footer_text = Column(Text, nullable=True)
    layout_type = Column(String(32), nullable=False, default="default")
    header_style = Column(String(32), nullable=False, default="default")
    footer_style = Column(String(32), nullable=False, default="default")
    form_layout = Column(String(32), nullable=False, default="default")
    form_position = Column(String(32), nullable=False, default="center")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "site_name": self.site_name,
            "site_description": self.site_description,
            "primary_color": self.primary_color,
            "system_font_color": self.system_font_color,
            "logo_url": self.logo_url,
            "favicon_url": self.favicon_url,
            "footer_text": self.footer_text,
            "layout_type": self.layout_type,
            "header_style": self.header_style,
            "footer_style": self.footer_style,
            "form_layout": self.form_layout,
            "form_position": self.form_position,
            "updated_at": _iso(self.updated_at),
        }


class EmailSettings(Base):
    __tablename__ = "email_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    smtp_host = Column(String(256), nullable=False, default="")
    smtp_port = Column(Integer, nullable=False, default=587)
    smtp_ssl = Column(Boolean, nullable=False, default=True)
    smtp_username = Column(String(256), nullable=True)
    smtp_password = Column(String(256), nullable=True)
    sender_email = Column(String(320), nullable=False, default="")
    sender_name = Column(String(256), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "smtp_host": self.smtp_host,
            "smtp_port": int(self.smtp_port) if self.smtp_port is not None else None,
            "smtp_ssl": bool(self.smtp_ssl),
            "smtp_username": self.smtp_username,
            "smtp_password": self.smtp_password,
            "sender_email": self.sender_email,
            "sender_name": self.sender_name,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(64), nullable=False, unique=True)
    subject = Column(String(512), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "subject": self.subject,
            "body": self.body,
            "updated_at": _iso(self.updated_at),
        }
