"""Shared Streamlit page plumbing.

Every page starts with ``page_setup(...)``: logging, database bootstrap,
theme, login gate and sidebar, in that order.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import streamlit as st

from taskboard import auth
from taskboard.db import check_connection, init_db
from taskboard.errors import BackendError, ConnectionFailed
from taskboard.logging_setup import setup_logging
from taskboard.page_catalog import GROUP_ICONS, catalog_by_group, visible_pages
from taskboard.query_cache import QueryCache
from taskboard.settings_repo import get_system_settings
from taskboard.theme import set_theme

logger = logging.getLogger(__name__)

_DB_READY_KEY = "_db_ready"


def get_cache() -> QueryCache:
    return QueryCache(st.session_state)


def notify_error(exc: Exception, message: str = "Something went wrong") -> None:
    """Toast a backend failure; the details go to the log."""
    logger.warning("%s: %s", message, exc)
    st.toast(f"{message}: {exc}", icon="⚠️")


def fetch_or_default(action: Callable[[], Any], message: str, default: Any) -> Any:
    """Run a read; on a backend failure toast it and return ``default``."""
    try:
        return action()
    except BackendError as exc:
        notify_error(exc, message)
        return default


def render_connection_error(error: Optional[str]) -> None:
    st.error("Could not connect to the database.")
    if error:
        with st.expander("Details"):
            st.code(error)
    if st.button("Retry connection", type="primary"):
        st.session_state.pop(_DB_READY_KEY, None)
        st.rerun()
    st.stop()


def ensure_database() -> None:
    if st.session_state.get(_DB_READY_KEY):
        return
    ok, error = check_connection()
    if not ok:
        render_connection_error(error)
    try:
        init_db()
    except ConnectionFailed as exc:
        render_connection_error(str(exc))
    st.session_state[_DB_READY_KEY] = True


def system_settings() -> Dict[str, Any]:
    return get_cache().get(("system_settings",), get_system_settings)


def require_login() -> Dict[str, Any]:
    user = auth.current_user(st.session_state)
    if user is None:
        st.warning("Please sign in to continue.")
        st.page_link("app.py", label="Go to sign in", icon="🔑")
        st.stop()
    return user


def require_role(role_name: str) -> Dict[str, Any]:
    user = require_login()
    if not auth.has_role(st.session_state, role_name):
        st.error("You do not have permission to view this page.")
        st.stop()
    return user


def render_sidebar(settings: Optional[Dict[str, Any]] = None) -> None:
    settings = settings or {}
    with st.sidebar:
        if settings.get("logo_url"):
            st.image(settings["logo_url"], width=140)
        st.markdown(f"### {settings.get('site_name') or 'Project Board'}")

        user = auth.current_user(st.session_state)
        if user is None:
            st.page_link("app.py", label="Sign in", icon="🔑")
            return

        st.caption(f"Signed in as **{user['name']}**")
        pages = visible_pages(auth.current_roles(st.session_state))
        for group, specs in catalog_by_group(pages).items():
            st.markdown(f"**{GROUP_ICONS.get(group, '📁')} {group}**")
            for spec in specs:
                st.page_link(spec.path, label=spec.title, icon=spec.icon)

        st.divider()
        if st.button("Sign out", use_container_width=True):
            auth.sign_out(st.session_state)
            get_cache().invalidate()
            st.rerun()


def render_footer(settings: Dict[str, Any]) -> None:
    if settings.get("footer_text"):
        st.markdown(f'<div class="tb-footer">{settings["footer_text"]}</div>', unsafe_allow_html=True)


def page_setup(title: str, icon: str = "📋", role: Optional[str] = None, login_required: bool = True) -> Optional[Dict[str, Any]]:
    """Run the common page preamble and return the signed-in user."""
    setup_logging()
    ensure_database()
    try:
        settings = system_settings()
    except BackendError as exc:
        logger.warning("Falling back to default branding: %s", exc)
        settings = {}
    set_theme(page_title=f"{title} · {settings.get('site_name') or 'Project Board'}", page_icon=icon, settings=settings)
    render_sidebar(settings)
    if role:
        return require_role(role)
    if login_required:
        return require_login()
    return auth.current_user(st.session_state)
