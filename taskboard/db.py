"""Database engine, session management and bootstrap data."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from sqlalchemy import create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taskboard.config import get_config
from taskboard.errors import BackendError, ConnectionFailed
from taskboard.models import Base, Profile, Role, SystemSettings, UserRole
from taskboard.passwords import hash_password

logger = logging.getLogger(__name__)

DEFAULT_ROLES = {
    "admin": "Full access to settings, users and roles",
    "user": "Regular board member",
}

# Module-level cache for engine
_engine: Optional[Engine] = None
_sessionmaker = None


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Get or create the SQLAlchemy engine.

    The cached engine is reused while the URL is unchanged.
    """
    global _engine, _sessionmaker

    if database_url is None:
        database_url = get_config().database_url

    if _engine is not None and _engine.url.render_as_string(hide_password=False) == database_url:
        return _engine

    # Streamlit serves each session from its own thread.
    connect_args = {}
    if database_url.startswith("sqlite:"):
        connect_args = {"check_same_thread": False}

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        database_url,
        future=True,
        echo=get_config().sql_echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    _sessionmaker = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False, future=True)
    return _engine


def get_session(database_url: Optional[str] = None) -> Session:
    get_engine(database_url)
    return _sessionmaker()


def reset_engine() -> None:
    global _engine, _sessionmaker
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessionmaker = None


@contextmanager
def session_scope(action: str) -> Iterator[Session]:
    """Yield a session; database failures surface as BackendError.

    Callers commit explicitly, like every other repository function.
    """
    session = get_session()
    try:
        yield session
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error while %s", action)
        raise BackendError(f"Database error while {action}") from exc
    finally:
        session.close()


def init_db(database_url: Optional[str] = None) -> None:
    """Create tables and seed roles, branding row and the bootstrap admin.

    Safe to call on every page load.
    """
    engine = get_engine(database_url)
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        logger.exception("Could not create tables")
        raise ConnectionFailed("Could not initialise the database") from exc

    cfg = get_config()
    with get_session(database_url) as s:
        existing = {r.name: r for r in s.execute(select(Role)).scalars().all()}
        for name, description in DEFAULT_ROLES.items():
            if name not in existing:
                role = Role(name=name, description=description)
                s.add(role)
                existing[name] = role
                logger.info("Seeded role %s", name)

        if s.execute(select(SystemSettings).limit(1)).scalars().first() is None:
            s.add(SystemSettings())
        s.flush()

        if cfg.admin_email and cfg.admin_password:
            email = cfg.admin_email.strip().lower()
            admin = s.execute(select(Profile).where(Profile.email == email)).scalars().first()
            if admin is None:
                admin = Profile(name="Administrator", email=email, password_hash=hash_password(cfg.admin_password))
                s.add(admin)
                s.flush()
                s.add(UserRole(profile_id=admin.id, role_id=existing["admin"].id))
                logger.info("Seeded admin profile %s", email)
        s.commit()


def check_connection() -> Tuple[bool, Optional[str]]:
    """Check the backend once; used by the retry-connection screen."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except SQLAlchemyError as exc:
        logger.warning("Connection check failed: %s", exc)
        return False, str(exc)
