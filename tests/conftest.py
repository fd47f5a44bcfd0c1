import pytest

from taskboard import config, db


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point configuration at a throwaway SQLite database and storage dir."""
    monkeypatch.setenv("TASKBOARD_DATABASE_URL", f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    monkeypatch.setenv("TASKBOARD_STORAGE_DIR", str(tmp_path / "attachments"))
    monkeypatch.setenv("TASKBOARD_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("TASKBOARD_ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("TASKBOARD_ADMIN_PASSWORD", raising=False)
    config.reset_config()
    db.reset_engine()
    yield tmp_path
    db.reset_engine()
    config.reset_config()


@pytest.fixture
def database(app_env):
    db.init_db()
    return app_env


@pytest.fixture
def owner(database):
    from taskboard import auth

    return auth.sign_up("Owner", "owner@example.com", "secret1")


@pytest.fixture
def project(database, owner):
    from taskboard import projects_repo

    return projects_repo.create_project({"title": "Website"}, owner_id=owner["id"])
