"""Sign in / sign up / password reset and session-state helpers.

The session helpers take any mutable mapping so they work with
``st.session_state`` as well as a plain dict in tests.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, MutableMapping, Optional

from sqlalchemy import func, select

from taskboard import users_repo
from taskboard.config import get_config
from taskboard.db import session_scope
from taskboard.errors import AuthError, NotFoundError, ValidationError
from taskboard.models import Profile, Role, UserRole
from taskboard.passwords import hash_password, new_token, verify_password
from taskboard.validators import validate_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

SESSION_USER_KEY = "auth_user"
SESSION_ROLES_KEY = "auth_roles"
SESSION_LOGGED_IN_KEY = "logged_in"


def _normalise_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")


def sign_up(name: str, email: str, password: str) -> Dict[str, Any]:
    if not (name or "").strip():
        raise ValidationError("Name is required")
    if not validate_email(email):
        raise ValidationError("Invalid email address")
    _check_password(password)

    email = _normalise_email(email)
    with session_scope("signing up") as s:
        taken = s.execute(select(Profile.id).where(func.lower(Profile.email) == email)).first()
        if taken:
            raise ValidationError("An account with this email already exists")
        profile = Profile(name=name.strip(), email=email, password_hash=hash_password(password))
        s.add(profile)
        s.flush()
        role = s.execute(select(Role).where(Role.name == "user")).scalars().first()
        if role is not None:
            s.add(UserRole(profile_id=profile.id, role_id=role.id))
        s.commit()
        logger.info("Created account %s", email)
        return profile.to_dict()


def sign_in(email: str, password: str) -> Dict[str, Any]:
    if not validate_email(email):
        raise ValidationError("Invalid email address")
    email = _normalise_email(email)
    with session_scope("signing in") as s:
        profile = s.execute(select(Profile).where(func.lower(Profile.email) == email)).scalars().first()
        if profile is None or not verify_password(password or "", profile.password_hash):
            logger.info("Failed sign in for %s", email)
            raise AuthError("Invalid email or password")
        return profile.to_dict()


def request_password_reset(email: str) -> Optional[str]:
    """Issue a reset token; unknown addresses get None, not an error."""
    if not validate_email(email):
        raise ValidationError("Invalid email address")
    email = _normalise_email(email)
    minutes = get_config().reset_token_minutes
    with session_scope("requesting password reset") as s:
        profile = s.execute(select(Profile).where(func.lower(Profile.email) == email)).scalars().first()
        if profile is None:
            logger.info("Password reset requested for unknown email")
            return None
        token = new_token()
        profile.reset_token = token
        profile.reset_expires_at = datetime.utcnow() + timedelta(minutes=minutes)
        s.commit()
        logger.info("Password reset token issued for %s", email)
        return token


def reset_password(token: str, new_password: str) -> None:
    _check_password(new_password)
    with session_scope("resetting password") as s:
        profile = s.execute(select(Profile).where(Profile.reset_token == token)).scalars().first() if token else None
        if profile is None:
            raise AuthError("Invalid reset token")
        if profile.reset_expires_at is None or profile.reset_expires_at < datetime.utcnow():
            raise AuthError("Reset token has expired")
        profile.password_hash = hash_password(new_password)
        profile.reset_token = None
        profile.reset_expires_at = None
        s.commit()


def change_password(profile_id: str, current_password: str, new_password: str) -> None:
    _check_password(new_password)
    with session_scope("changing password") as s:
        profile = s.get(Profile, profile_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        if not verify_password(current_password or "", profile.password_hash):
            raise AuthError("Current password is incorrect")
        profile.password_hash = hash_password(new_password)
        s.commit()


# ---------------- Session state ----------------

def set_login_state(session_state: MutableMapping[str, Any], profile: Optional[Dict[str, Any]]) -> None:
    if profile is None:
        session_state[SESSION_LOGGED_IN_KEY] = False
        session_state.pop(SESSION_USER_KEY, None)
        session_state.pop(SESSION_ROLES_KEY, None)
        return
    session_state[SESSION_LOGGED_IN_KEY] = True
    session_state[SESSION_USER_KEY] = profile
    session_state[SESSION_ROLES_KEY] = [r["name"] for r in users_repo.get_user_roles(profile["id"])]


def is_logged_in(session_state: MutableMapping[str, Any]) -> bool:
    return bool(session_state.get(SESSION_LOGGED_IN_KEY, False))


def current_user(session_state: MutableMapping[str, Any]) -> Optional[Dict[str, Any]]:
    return session_state.get(SESSION_USER_KEY) if is_logged_in(session_state) else None


def current_roles(session_state: MutableMapping[str, Any]) -> List[str]:
    return list(session_state.get(SESSION_ROLES_KEY) or [])


def has_role(session_state: MutableMapping[str, Any], role_name: str) -> bool:
    return is_logged_in(session_state) and role_name in current_roles(session_state)


def sign_out(session_state: MutableMapping[str, Any]) -> None:
    user = current_user(session_state)
    set_login_state(session_state, None)
    if user:
        logger.info("Signed out %s", user.get("email"))
