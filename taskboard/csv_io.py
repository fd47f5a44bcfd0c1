"""CSV export and import built on pandas."""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Any, Dict, IO, List, Optional, Sequence, Tuple, Union

import pandas as pd

from taskboard.errors import ValidationError
from taskboard.timefmt import format_date_br, format_seconds_hhmmss, parse_date

logger = logging.getLogger(__name__)

# field key -> CSV header
TASK_COLUMNS = {
    "project": "Project",
    "title": "Title",
    "description": "Description",
    "priority": "Priority",
    "due_date": "Due Date",
    "status": "Status",
    "created_at": "Created At",
}

PROJECT_COLUMNS = {
    "sequence_number": "Number",
    "title": "Title",
    "description": "Description",
    "analyst": "Analyst",
    "estimated_value": "Estimated Value",
    "actual_value": "Actual Value",
    "estimated_end_date": "Estimated End Date",
    "actual_end_date": "Actual End Date",
    "estimated_hours": "Estimated Hours",
    "actual_hours": "Actual Hours",
    "position": "Position",
}


def _task_row(task: Dict[str, Any], project_titles: Dict[Any, str]) -> Dict[str, Any]:
    return {
        "project": project_titles.get(task.get("project_id"), ""),
        "title": task.get("title") or "",
        "description": task.get("description") or "",
        "priority": task.get("priority") or "",
        "due_date": task.get("due_date") or "",
        "status": "Completed" if task.get("completed") else "In Progress",
        "created_at": format_date_br(task.get("created_at")),
    }


def export_tasks_csv(
    tasks: Sequence[Dict[str, Any]],
    projects: Sequence[Dict[str, Any]],
    fields: Optional[Sequence[str]] = None,
) -> str:
    keys = [f for f in (TASK_COLUMNS if fields is None else fields) if f in TASK_COLUMNS]
    titles = {p["id"]: p.get("title") or "" for p in projects}
    rows = [_task_row(t, titles) for t in tasks]
    df = pd.DataFrame(rows, columns=list(TASK_COLUMNS))
    df = df[keys].rename(columns=TASK_COLUMNS)
    return df.to_csv(index=False)


def export_projects_csv(projects: Sequence[Dict[str, Any]], fields: Optional[Sequence[str]] = None) -> str:
    keys = ["sequence_number"] + [f for f in (PROJECT_COLUMNS if fields is None else fields) if f in PROJECT_COLUMNS and f != "sequence_number"]
    rows = []
    for p in projects:
        row = {k: p.get(k) for k in PROJECT_COLUMNS}
        for col in ("estimated_hours", "actual_hours"):
            row[col] = format_seconds_hhmmss(row[col])
        for col in ("estimated_end_date", "actual_end_date"):
            row[col] = format_date_br(row[col])
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(PROJECT_COLUMNS), dtype=object)
    return df[keys].rename(columns=PROJECT_COLUMNS).to_csv(index=False)


def export_filename(today: Optional[date] = None, prefix: str = "tasks") -> str:
    return f"{prefix}-{(today or date.today()).isoformat()}.csv"


def _int_or(value: Any, default: Optional[int]) -> Optional[int]:
    text = str(value or "").strip()
    if not text:
        return default
    try:
        return int(float(text))
    except ValueError:
        return default


def parse_import_csv(source: Union[str, bytes, IO]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Split an import CSV into project rows and task rows.

    Rows are told apart by the ``type`` column (``project`` or ``task``);
    other types are skipped. Tasks must carry an integer ``project_id``.
    All row problems are collected and raised together.
    """
    if isinstance(source, bytes):
        source = source.decode("utf-8-sig")
    if isinstance(source, str):
        source = io.StringIO(source)

    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skipinitialspace=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Could not read CSV: {exc}") from exc

    df.columns = [str(c).strip().lower() for c in df.columns]
    if "type" not in df.columns:
        raise ValidationError("CSV must have a 'type' column")

    projects: List[Dict[str, Any]] = []
    tasks: List[Dict[str, Any]] = []
    errors: List[str] = []
    for line, row in enumerate(df.to_dict("records"), start=2):
        kind = (row.get("type") or "").strip().lower()
        title = (row.get("title") or "").strip()
        if kind == "project":
            if not title:
                errors.append(f"line {line}: project without a title")
                continue
            projects.append({"title": title, "position": _int_or(row.get("position"), 0)})
        elif kind == "task":
            project_id = _int_or(row.get("project_id"), None)
            if project_id is None:
                errors.append(f"line {line}: invalid project_id {row.get('project_id')!r}")
                continue
            if not title:
                errors.append(f"line {line}: task without a title")
                continue
            task = {
                "title": title,
                "description": (row.get("description") or "").strip() or None,
                "due_date": parse_date(row.get("due_date")),
                "position": _int_or(row.get("position"), 0),
                "project_id": project_id,
            }
            priority = (row.get("priority") or "").strip().lower()
            if priority:
                task["priority"] = priority
            tasks.append(task)

    if errors:
        raise ValidationError("Invalid CSV rows: " + "; ".join(errors))
    logger.info("Parsed import CSV: %d projects, %d tasks", len(projects), len(tasks))
    return projects, tasks
