from datetime import datetime, timedelta

import pytest

from taskboard import auth, users_repo
from taskboard.db import session_scope
from taskboard.errors import AuthError, ValidationError
from taskboard.models import Profile


@pytest.mark.parametrize(
    "email",
    ["user@example.com", "First.Last+tag@sub.domain.org", "UPPER@EXAMPLE.COM"],
)
def test_validate_email_accepts_wellformed(email):
    assert auth.validate_email(email)


@pytest.mark.parametrize(
    "email",
    ["", None, "plainaddress", "@example.com", "user@", "user@example", "user@example.c", "user name@example.com"],
)
def test_validate_email_rejects_malformed(email):
    assert not auth.validate_email(email)


def test_sign_up_and_sign_in(database):
    created = auth.sign_up("Ana", "Ana@Example.com", "secret1")
    assert created["email"] == "ana@example.com"
    assert "password_hash" not in created

    profile = auth.sign_in("ana@example.com", "secret1")
    assert profile["id"] == created["id"]
    assert [r["name"] for r in users_repo.get_user_roles(created["id"])] == ["user"]


def test_login_failure(database):
    auth.sign_up("Ana", "ana@example.com", "secret1")
    with pytest.raises(AuthError):
        auth.sign_in("ana@example.com", "wrongpass")
    with pytest.raises(AuthError):
        auth.sign_in("nobody@example.com", "secret1")


def test_sign_up_rejects_bad_input(database):
    with pytest.raises(ValidationError):
        auth.sign_up("Ana", "not-an-email", "secret1")
    with pytest.raises(ValidationError):
        auth.sign_up("Ana", "ana@example.com", "123")
    auth.sign_up("Ana", "ana@example.com", "secret1")
    with pytest.raises(ValidationError):
        auth.sign_up("Other", "ANA@example.com", "secret2")


def test_password_reset_flow(database):
    auth.sign_up("Ana", "ana@example.com", "secret1")
    assert auth.request_password_reset("ghost@example.com") is None

    token = auth.request_password_reset("ana@example.com")
    assert token
    auth.reset_password(token, "newsecret")
    assert auth.sign_in("ana@example.com", "newsecret")["email"] == "ana@example.com"

    with pytest.raises(AuthError):
        auth.reset_password(token, "another1")


def test_expired_reset_token(database):
    auth.sign_up("Ana", "ana@example.com", "secret1")
    token = auth.request_password_reset("ana@example.com")
    with session_scope("expiring token") as s:
        p = s.query(Profile).filter_by(email="ana@example.com").one()
        p.reset_expires_at = datetime.utcnow() - timedelta(minutes=1)
        s.commit()
    with pytest.raises(AuthError):
        auth.reset_password(token, "newsecret")


def test_change_password(database):
    created = auth.sign_up("Ana", "ana@example.com", "secret1")
    with pytest.raises(AuthError):
        auth.change_password(created["id"], "wrong", "newsecret")
    auth.change_password(created["id"], "secret1", "newsecret")
    assert auth.sign_in("ana@example.com", "newsecret")


def test_session_state_helpers(database):
    state = {}
    assert not auth.is_logged_in(state)
    assert auth.current_user(state) is None

    profile = auth.sign_up("Ana", "ana@example.com", "secret1")
    auth.set_login_state(state, profile)
    assert auth.is_logged_in(state)
    assert auth.current_user(state)["id"] == profile["id"]
    assert auth.has_role(state, "user")
    assert not auth.has_role(state, "admin")

    auth.sign_out(state)
    assert not auth.is_logged_in(state)
    assert not auth.has_role(state, "user")


def test_bootstrap_admin(app_env, monkeypatch):
    from taskboard import config, db

    monkeypatch.setenv("TASKBOARD_ADMIN_EMAIL", "Admin@Example.com")
    monkeypatch.setenv("TASKBOARD_ADMIN_PASSWORD", "adminpass")
    config.reset_config()
    db.init_db()
    db.init_db()

    profile = auth.sign_in("admin@example.com", "adminpass")
    assert users_repo.user_has_role(profile["id"], "admin")
    assert len(users_repo.list_profiles()) == 1
