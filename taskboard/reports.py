"""Report frames and charts for the Reports page.

Frame builders take the repository dicts and return pandas DataFrames;
``figure_*`` helpers turn those frames into plotly figures. Keeping the
two apart lets the numbers be tested without rendering anything.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Optional, Sequence

import pandas as pd
import plotly.express as px

from taskboard.board import PRIORITY_LABELS, STATUS_LABELS
from taskboard.models import STATUS_COMPLETED, STATUS_NOT_STARTED

PLOTLY_TEMPLATE = "plotly_white"

STATUS_COLORS = {
    STATUS_LABELS["concluida"]: "#22C55E",
    STATUS_LABELS["em_andamento"]: "#F59E0B",
    STATUS_LABELS["nao_iniciada"]: "#94A3B8",
}

FRAME_COLUMNS = [
    "id",
    "project_id",
    "project",
    "title",
    "assignee_id",
    "assignee",
    "priority",
    "status",
    "status_label",
    "completed",
    "due_date",
    "created_at",
    "updated_at",
    "hours",
]


def tasks_frame(
    tasks: Sequence[Dict[str, Any]],
    projects: Sequence[Dict[str, Any]],
    profiles: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """One row per task with display names resolved.

    ``profiles`` maps profile id to name; tasks without an assignee are
    reported as ``Unassigned``.
    """
    titles = {p["id"]: p.get("title") or "" for p in projects}
    names = profiles or {}
    rows = []
    for t in tasks:
        status = STATUS_COMPLETED if t.get("completed") else (t.get("status") or STATUS_NOT_STARTED)
        assignee_id = t.get("assignee_id")
        rows.append({
            "id": t.get("id"),
            "project_id": t.get("project_id"),
            "project": titles.get(t.get("project_id"), "No project"),
            "title": t.get("title"),
            "assignee_id": assignee_id,
            "assignee": names.get(assignee_id, "Unknown") if assignee_id else "Unassigned",
            "priority": t.get("priority") or "medium",
            "status": status,
            "status_label": STATUS_LABELS.get(status, status),
            "completed": bool(t.get("completed")),
            "due_date": t.get("due_date"),
            "created_at": t.get("created_at"),
            "updated_at": t.get("updated_at"),
            "hours": (t.get("actual_hours") or 0) / 3600,
        })
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    for col in ("due_date", "created_at", "updated_at"):
        df[col] = pd.to_datetime(df[col], errors="coerce")
    df["hours"] = df["hours"].astype(float)
    df["completed"] = df["completed"].astype(bool)
    return df


def status_distribution(df: pd.DataFrame) -> pd.DataFrame:
    order = list(STATUS_LABELS.values())
    counts = df["status_label"].value_counts().reindex(order, fill_value=0)
    return counts.rename_axis("status").reset_index(name="count")


def priority_distribution(df: pd.DataFrame, open_only: bool = True) -> pd.DataFrame:
    data = df[~df["completed"]] if open_only else df
    counts = data["priority"].value_counts().reindex(list(PRIORITY_LABELS), fill_value=0)
    out = counts.rename_axis("priority").reset_index(name="count")
    out["priority"] = out["priority"].map(PRIORITY_LABELS)
    return out


def workload_by_assignee(df: pd.DataFrame) -> pd.DataFrame:
    """Task counts per assignee and status, busiest assignee first."""
    if df.empty:
        return pd.DataFrame(columns=["assignee", "status_label", "count"])
    grouped = df.groupby(["assignee", "status_label"]).size().reset_index(name="count")
    order = grouped.groupby("assignee")["count"].sum().sort_values(ascending=False).index.tolist()
    grouped["assignee"] = pd.Categorical(grouped["assignee"], categories=order, ordered=True)
    return grouped.sort_values(["assignee", "status_label"]).reset_index(drop=True)


def hours_by_assignee(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["assignee", "hours"])
    out = df.groupby("assignee", as_index=False)["hours"].sum()
    return out.sort_values("hours", ascending=False).reset_index(drop=True)


def _window_counts(df: pd.DataFrame, start: pd.Timestamp, end: pd.Timestamp) -> Dict[str, int]:
    created = df["created_at"].between(start, end)
    completed = df["completed"] & df["updated_at"].between(start, end)
    return {"created": int(created.sum()), "completed": int(completed.sum())}


def weekly_comparison(df: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    """Created and completed counts for ``start..end`` and the window before.

    The previous window has the same length and ends the day before
    ``start``. Completion is dated by the task's last update.
    """
    if end < start:
        raise ValueError("end must not be before start")
    length = (end - start).days + 1
    cur_start = pd.Timestamp(start)
    cur_end = pd.Timestamp(end) + pd.Timedelta(days=1) - pd.Timedelta(microseconds=1)
    prev_start = pd.Timestamp(start - timedelta(days=length))
    prev_end = cur_start - pd.Timedelta(microseconds=1)
    rows = [
        {"period": "Previous week", **_window_counts(df, prev_start, prev_end)},
        {"period": "Current week", **_window_counts(df, cur_start, cur_end)},
    ]
    return pd.DataFrame(rows, columns=["period", "created", "completed"])


def project_evolution(df: pd.DataFrame) -> pd.DataFrame:
    """Per-project task counts in each status bucket."""
    order = list(STATUS_LABELS.values())
    if df.empty:
        return pd.DataFrame(columns=["project"] + order)
    table = df.pivot_table(index="project", columns="status_label", values="id", aggfunc="count", fill_value=0)
    table = table.reindex(columns=order, fill_value=0).astype(int)
    table.columns.name = None
    return table.reset_index()


def _style(fig, height: int = 320):
    fig.update_layout(
        template=PLOTLY_TEMPLATE,
        margin=dict(l=10, r=10, t=40, b=10),
        height=height,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def figure_status(df: pd.DataFrame):
    data = status_distribution(df)
    fig = px.pie(data, names="status", values="count", color="status", color_discrete_map=STATUS_COLORS, title="Tasks by status")
    return _style(fig)


def figure_priority(df: pd.DataFrame):
    fig = px.bar(priority_distribution(df), x="priority", y="count", title="Open tasks by priority")
    return _style(fig)


def figure_workload(df: pd.DataFrame):
    fig = px.bar(
        workload_by_assignee(df),
        x="assignee",
        y="count",
        color="status_label",
        color_discrete_map=STATUS_COLORS,
        title="Workload by assignee",
    )
    fig.update_layout(barmode="stack")
    return _style(fig, height=360)


def figure_hours(df: pd.DataFrame):
    fig = px.bar(hours_by_assignee(df), x="assignee", y="hours", title="Hours logged by assignee")
    return _style(fig)


def figure_weekly(df: pd.DataFrame, start: date, end: date):
    data = weekly_comparison(df, start, end).melt(id_vars="period", var_name="metric", value_name="count")
    fig = px.bar(data, x="period", y="count", color="metric", barmode="group", title="Week over week")
    return _style(fig)


def figure_project_evolution(df: pd.DataFrame):
    data = project_evolution(df).melt(id_vars="project", var_name="status", value_name="count")
    fig = px.bar(
        data,
        x="project",
        y="count",
        color="status",
        color_discrete_map=STATUS_COLORS,
        title="Project progress",
    )
    fig.update_layout(barmode="stack")
    return _style(fig, height=360)
