import io
from datetime import date

import pandas as pd
import pytest

from taskboard import csv_io
from taskboard.errors import ValidationError

PROJECTS = [{"id": 1, "title": "Website"}, {"id": 2, "title": "Mobile"}]
TASKS = [
    {
        "id": 10,
        "project_id": 1,
        "title": "Landing page",
        "description": "Hero, pricing",
        "priority": "high",
        "due_date": "2024-05-20",
        "completed": True,
        "created_at": "2024-05-01T09:30:00",
    },
    {
        "id": 11,
        "project_id": 2,
        "title": "Push notifications",
        "description": None,
        "priority": "low",
        "due_date": None,
        "completed": False,
        "created_at": None,
    },
]


def _read(text):
    return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)


def test_export_tasks_all_columns():
    df = _read(csv_io.export_tasks_csv(TASKS, PROJECTS))
    assert list(df.columns) == list(csv_io.TASK_COLUMNS.values())
    first = df.iloc[0]
    assert first["Project"] == "Website"
    assert first["Description"] == "Hero, pricing"
    assert first["Status"] == "Completed"
    assert first["Created At"] == "01/05/2024"
    assert df.iloc[1]["Status"] == "In Progress"
    assert df.iloc[1]["Due Date"] == ""


def test_export_tasks_respects_enabled_fields():
    df = _read(csv_io.export_tasks_csv(TASKS, PROJECTS, fields=["title", "status", "bogus"]))
    assert list(df.columns) == ["Title", "Status"]


def test_export_projects_formats_hours_and_dates():
    projects = [
        {
            "id": 1,
            "sequence_number": 1,
            "title": "Website",
            "estimated_hours": 5400,
            "actual_hours": None,
            "estimated_end_date": "2024-06-30",
            "estimated_value": 1500,
        },
        {"id": 2, "sequence_number": 2, "title": "Mobile", "estimated_value": None},
    ]
    df = _read(csv_io.export_projects_csv(projects, fields=["title", "estimated_hours", "estimated_end_date"]))
    assert list(df.columns) == ["Number", "Title", "Estimated Hours", "Estimated End Date"]
    assert df.iloc[0]["Estimated Hours"] == "01:30:00"
    assert df.iloc[0]["Estimated End Date"] == "30/06/2024"
    assert df.iloc[1]["Estimated Hours"] == "00:00:00"
    assert df.iloc[1]["Number"] == "2"


def test_export_filename():
    assert csv_io.export_filename(date(2024, 3, 7)) == "tasks-2024-03-07.csv"
    assert csv_io.export_filename(date(2024, 3, 7), prefix="projects") == "projects-2024-03-07.csv"


def test_parse_import_csv_splits_rows():
    text = (
        "type,title,description,due_date,position,project_id,priority\n"
        "project,Website,,,2,,\n"
        "task,Landing page,Hero,2024-05-20,1,1,HIGH\n"
        "task,Footer,,,,1,\n"
        "comment,ignored,,,,,\n"
    )
    projects, tasks = csv_io.parse_import_csv(text)
    assert projects == [{"title": "Website", "position": 2}]
    assert tasks[0] == {
        "title": "Landing page",
        "description": "Hero",
        "due_date": date(2024, 5, 20),
        "position": 1,
        "project_id": 1,
        "priority": "high",
    }
    assert tasks[1]["position"] == 0
    assert tasks[1]["description"] is None
    assert "priority" not in tasks[1]


def test_parse_import_csv_accepts_bytes_with_bom():
    data = "\ufefftype,title,project_id\ntask,Ship,3\n".encode("utf-8")
    projects, tasks = csv_io.parse_import_csv(data)
    assert projects == []
    assert tasks[0]["project_id"] == 3


def test_parse_import_csv_collects_row_errors():
    text = "type,title,project_id\ntask,No project,abc\ntask,,1\nproject,,\n"
    with pytest.raises(ValidationError) as exc:
        csv_io.parse_import_csv(text)
    message = str(exc.value)
    assert "line 2" in message
    assert "line 3" in message
    assert "line 4" in message


def test_parse_import_csv_requires_type_column():
    with pytest.raises(ValidationError):
        csv_io.parse_import_csv("title,project_id\nShip,1\n")


def test_parse_import_csv_empty_input():
    with pytest.raises(ValidationError):
        csv_io.parse_import_csv("")
