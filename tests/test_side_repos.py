from datetime import datetime, timedelta

import pytest

from taskboard import (
    attachments_repo,
    auth,
    comments_repo,
    labels_repo,
    projects_repo,
    settings_repo,
    tasks_repo,
    time_repo,
    users_repo,
)
from taskboard.errors import NotFoundError, PermissionDenied, ValidationError


@pytest.fixture
def task(project):
    return tasks_repo.create_task({"title": "Landing page", "project_id": project["id"]})


# ---------------- Labels ----------------

@pytest.mark.parametrize("color,ok", [("#fff", True), ("#0EA5E9", True), ("0EA5E9", False), ("#12345", False), ("", False)])
def test_is_hex_color(color, ok):
    assert labels_repo.is_hex_color(color) is ok


def test_labels_on_tasks(task, owner):
    bug = labels_repo.create_label(" bug ", "#ff0000", owner_id=owner["id"])
    ux = labels_repo.create_label("ux", "#00f")
    assert bug["name"] == "bug"
    assert [lb["name"] for lb in labels_repo.list_labels()] == ["bug", "ux"]

    attached = labels_repo.set_task_labels(task["id"], [ux["id"], bug["id"], bug["id"]])
    assert [lb["name"] for lb in attached] == ["bug", "ux"]

    assert labels_repo.delete_label(bug["id"]) is True
    assert [lb["name"] for lb in labels_repo.labels_for_task(task["id"])] == ["ux"]
    assert labels_repo.delete_label(bug["id"]) is False


def test_label_validation(database):
    with pytest.raises(ValidationError):
        labels_repo.create_label("", "#fff")
    with pytest.raises(ValidationError):
        labels_repo.create_label("bug", "red")
    with pytest.raises(NotFoundError):
        labels_repo.set_task_labels(999, [])


# ---------------- Comments ----------------

def test_comments_only_author_deletes(task, owner):
    other = auth.sign_up("Other", "other@example.com", "secret1")
    c = comments_repo.add_comment(task["id"], owner["id"], "  Looks good  ")
    assert c["content"] == "Looks good"

    listed = comments_repo.list_comments(task["id"])
    assert listed[0]["author_name"] == "Owner"

    with pytest.raises(PermissionDenied):
        comments_repo.delete_comment(c["id"], other["id"])
    assert comments_repo.delete_comment(c["id"], owner["id"]) is True
    assert comments_repo.list_comments(task["id"]) == []


def test_comment_validation(task, owner):
    with pytest.raises(ValidationError):
        comments_repo.add_comment(task["id"], owner["id"], "   ")
    with pytest.raises(NotFoundError):
        comments_repo.add_comment(999, owner["id"], "hi")


# ---------------- Attachments ----------------

def test_attachment_lifecycle(task, owner, app_env):
    meta = attachments_repo.upload_attachment(task["id"], "../Spec sheet.pdf", b"%PDF-1", "application/pdf", owner["id"])
    assert meta["file_name"] == "Spec sheet.pdf"
    assert meta["size_bytes"] == 6
    assert meta["storage_path"].startswith(f"{task['id']}/")
    assert meta["storage_path"].endswith("_Spec_sheet.pdf")
    stored = app_env / "attachments" / meta["storage_path"]
    assert stored.exists()

    again, data = attachments_repo.download_attachment(meta["id"])
    assert data == b"%PDF-1"
    assert again["id"] == meta["id"]
    assert [a["id"] for a in attachments_repo.list_attachments(task["id"])] == [meta["id"]]

    assert attachments_repo.delete_attachment(meta["id"]) is True
    assert not stored.exists()
    with pytest.raises(NotFoundError):
        attachments_repo.download_attachment(meta["id"])


def test_attachment_validation(task):
    with pytest.raises(ValidationError):
        attachments_repo.upload_attachment(task["id"], "empty.txt", b"")
    with pytest.raises(ValidationError):
        attachments_repo.upload_attachment(task["id"], "big.bin", b"x" * (attachments_repo.MAX_UPLOAD_BYTES + 1))
    with pytest.raises(NotFoundError):
        attachments_repo.upload_attachment(999, "a.txt", b"a")


def test_missing_file_on_download(task, app_env):
    meta = attachments_repo.upload_attachment(task["id"], "a.txt", b"a")
    (app_env / "attachments" / meta["storage_path"]).unlink()
    with pytest.raises(NotFoundError):
        attachments_repo.download_attachment(meta["id"])


def test_deleting_task_and_project_removes_files(project, task, app_env):
    first = attachments_repo.upload_attachment(task["id"], "a.txt", b"a")
    other = tasks_repo.create_task({"title": "Footer", "project_id": project["id"]})
    second = attachments_repo.upload_attachment(other["id"], "b.txt", b"b")
    root = app_env / "attachments"

    tasks_repo.delete_task(task["id"])
    assert not (root / first["storage_path"]).exists()
    assert (root / second["storage_path"]).exists()

    projects_repo.delete_project(project["id"])
    assert not (root / second["storage_path"]).exists()


def test_remove_files_ignores_missing(app_env):
    attachments_repo.remove_files(["nope/missing.txt"])


# ---------------- Time entries ----------------

def test_time_entries_update_task_hours(task):
    start = datetime(2024, 5, 6, 9, 0)
    first = time_repo.log_time(task["id"], start, start + timedelta(hours=1, minutes=30))
    time_repo.log_time(task["id"], start + timedelta(days=1), start + timedelta(days=1, minutes=30))

    assert first["duration"] == 5400
    assert time_repo.total_seconds(task["id"]) == 7200
    assert tasks_repo.get_task(task["id"])["actual_hours"] == 7200
    assert len(time_repo.list_time_entries(task["id"])) == 2

    assert time_repo.delete_time_entry(first["id"]) is True
    assert tasks_repo.get_task(task["id"])["actual_hours"] == 1800
    assert time_repo.delete_time_entry(first["id"]) is False


def test_time_entry_validation(task):
    start = datetime(2024, 5, 6, 9, 0)
    with pytest.raises(ValidationError):
        time_repo.log_time(task["id"], start, start)
    with pytest.raises(ValidationError):
        time_repo.log_time(task["id"], None, start)
    with pytest.raises(NotFoundError):
        time_repo.log_time(999, start, start + timedelta(minutes=1))
    assert time_repo.total_seconds(task["id"]) == 0


# ---------------- Settings ----------------

def test_system_settings_defaults_and_update(database):
    current = settings_repo.get_system_settings()
    assert current["site_name"] == "Project Board"
    assert current["primary_color"] == "#0EA5E9"

    updated = settings_repo.update_system_settings(
        {"site_name": " Acme ", "primary_color": "#112233", "footer_text": "  ", "layout_type": "compact"}
    )
    assert updated["site_name"] == "Acme"
    assert updated["footer_text"] is None
    assert settings_repo.get_system_settings()["layout_type"] == "compact"


@pytest.mark.parametrize(
    "values",
    [
        {"primary_color": "blue"},
        {"system_font_color": "#zzz"},
        {"layout_type": "sideways"},
        {"form_position": "top"},
        {"site_name": "  "},
    ],
)
def test_system_settings_validation(database, values):
    with pytest.raises(ValidationError):
        settings_repo.update_system_settings(values)


def test_email_settings(database):
    assert settings_repo.get_email_settings() is None
    saved = settings_repo.save_email_settings(
        {"smtp_host": " smtp.example.com ", "smtp_port": "465", "smtp_ssl": 1, "sender_email": "noreply@example.com"}
    )
    assert saved["smtp_host"] == "smtp.example.com"
    assert saved["smtp_port"] == 465
    assert saved["smtp_ssl"] is True
    assert settings_repo.get_email_settings()["id"] == saved["id"]

    with pytest.raises(ValidationError):
        settings_repo.save_email_settings({"smtp_port": "abc"})
    with pytest.raises(ValidationError):
        settings_repo.save_email_settings({"smtp_port": 70000})


def test_email_templates_upsert(database):
    settings_repo.save_email_template("welcome", "Hi", "Welcome aboard")
    settings_repo.save_email_template("welcome", "Hello", "Welcome aboard!")
    settings_repo.save_email_template("reset", "Reset", "Code: {token}")
    templates = settings_repo.list_email_templates()
    assert [t["key"] for t in templates] == ["reset", "welcome"]
    assert templates[1]["subject"] == "Hello"
    with pytest.raises(ValidationError):
        settings_repo.save_email_template(" ", "s", "b")


# ---------------- Profiles and roles ----------------

def test_profiles_search_and_update(owner):
    assert [p["email"] for p in users_repo.list_profiles("OWN")] == ["owner@example.com"]
    assert users_repo.list_profiles("nobody") == []
    assert users_repo.profile_names() == {owner["id"]: "Owner"}

    updated = users_repo.update_profile(owner["id"], name="Olga", email="OLGA@example.com")
    assert updated["email"] == "olga@example.com"
    with pytest.raises(ValidationError):
        users_repo.update_profile(owner["id"], name="", email="olga@example.com")
    with pytest.raises(NotFoundError):
        users_repo.update_profile("missing", name="X", email="x@example.com")


def test_roles(owner):
    names = [r["name"] for r in users_repo.list_roles()]
    assert "admin" in names and "user" in names
    assert users_repo.user_has_role(owner["id"], "user")

    editor = users_repo.create_role(" Editor ", "Can edit")
    assert editor["name"] == "editor"
    with pytest.raises(ValidationError):
        users_repo.create_role("editor")

    users_repo.toggle_role(owner["id"], editor["id"], True)
    users_repo.toggle_role(owner["id"], editor["id"], True)
    assert [r["name"] for r in users_repo.get_user_roles(owner["id"])].count("editor") == 1
    users_repo.toggle_role(owner["id"], editor["id"], False)
    assert not users_repo.user_has_role(owner["id"], "editor")

    admin = next(r for r in users_repo.list_roles() if r["name"] == "admin")
    with pytest.raises(ValidationError):
        users_repo.delete_role(admin["id"])
    assert users_repo.delete_role(editor["id"]) is True

    assert users_repo.delete_profile(owner["id"]) is True
    assert users_repo.get_profile(owner["id"]) is None
