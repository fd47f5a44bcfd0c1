"""Profiles, roles and role assignments."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_, select

from taskboard.validators import validate_email
from taskboard.db import session_scope
from taskboard.errors import NotFoundError, ValidationError
from taskboard.models import Profile, Role, UserRole

logger = logging.getLogger(__name__)


def list_profiles(search: Optional[str] = None) -> List[Dict[str, Any]]:
    with session_scope("listing profiles") as s:
        q = select(Profile).order_by(Profile.name)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            q = q.where(or_(func.lower(Profile.name).like(pattern), func.lower(Profile.email).like(pattern)))
        return [p.to_dict() for p in s.execute(q).scalars().all()]


def get_profile(profile_id: str) -> Optional[Dict[str, Any]]:
    with session_scope("loading profile") as s:
        p = s.get(Profile, profile_id)
        return p.to_dict() if p else None


def profile_names() -> Dict[str, str]:
    """Map of profile id to display name, for rendering assignees and authors."""
    with session_scope("listing profile names") as s:
        return {pid: name for pid, name in s.execute(select(Profile.id, Profile.name)).all()}


def update_profile(profile_id: str, *, name: str, email: str) -> Dict[str, Any]:
    if not (name or "").strip():
        raise ValidationError("Name is required")
    if not validate_email(email):
        raise ValidationError("Invalid email address")
    email = email.strip().lower()
    with session_scope("updating profile") as s:
        p = s.get(Profile, profile_id)
        if p is None:
            raise NotFoundError("Profile not found")
        clash = s.execute(
            select(Profile.id).where(func.lower(Profile.email) == email, Profile.id != profile_id)
        ).first()
        if clash:
            raise ValidationError("Email already used by another profile")
        p.name = name.strip()
        p.email = email
        s.commit()
        return p.to_dict()


def delete_profile(profile_id: str) -> bool:
    with session_scope("deleting profile") as s:
        p = s.get(Profile, profile_id)
        if not p:
            return False
        s.execute(delete(UserRole).where(UserRole.profile_id == profile_id))
        s.delete(p)
        s.commit()
        logger.info("Deleted profile %s", profile_id)
        return True


# ---------------- Roles ----------------

def list_roles() -> List[Dict[str, Any]]:
    with session_scope("listing roles") as s:
        return [r.to_dict() for r in s.execute(select(Role).order_by(Role.name)).scalars().all()]


def create_role(name: str, description: Optional[str] = None) -> Dict[str, Any]:
    name = (name or "").strip().lower()
    if not name:
        raise ValidationError("Role name is required")
    with session_scope("creating role") as s:
        if s.execute(select(Role.id).where(Role.name == name)).first():
            raise ValidationError(f"Role {name} already exists")
        r = Role(name=name, description=(description or "").strip() or None)
        s.add(r)
        s.commit()
        return r.to_dict()


def delete_role(role_id: int) -> bool:
    with session_scope("deleting role") as s:
        r = s.get(Role, role_id)
        if not r:
            return False
        if r.name == "admin":
            raise ValidationError("The admin role cannot be deleted")
        s.execute(delete(UserRole).where(UserRole.role_id == role_id))
        s.delete(r)
        s.commit()
        return True


def get_user_roles(profile_id: str) -> List[Dict[str, Any]]:
    with session_scope("loading user roles") as s:
        q = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.profile_id == profile_id)
            .order_by(Role.name)
        )
        return [r.to_dict() for r in s.execute(q).scalars().all()]


def user_has_role(profile_id: str, role_name: str) -> bool:
    return any(r["name"] == role_name for r in get_user_roles(profile_id))


def toggle_role(profile_id: str, role_id: int, adding: bool) -> None:
    with session_scope("updating user roles") as s:
        if s.get(Profile, profile_id) is None:
            raise NotFoundError("Profile not found")
        if s.get(Role, role_id) is None:
            raise NotFoundError("Role not found")
        existing = s.execute(
            select(UserRole).where(UserRole.profile_id == profile_id, UserRole.role_id == role_id)
        ).scalars().first()
        if adding and existing is None:
            s.add(UserRole(profile_id=profile_id, role_id=role_id))
        elif not adding and existing is not None:
            s.delete(existing)
        s.commit()
        logger.info("Role %s %s for %s", role_id, "granted" if adding else "revoked", profile_id)
