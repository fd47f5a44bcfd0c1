"""Board aggregation: ordering, grouping, progress and filters.

Everything here works on the plain dicts returned by the repositories so
it can be used (and tested) without a database or a Streamlit session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from html import escape
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from taskboard.models import STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_STARTED
from taskboard.timefmt import format_date_br, parse_date

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

PRIORITY_LABELS = {"high": "High", "medium": "Medium", "low": "Low"}

STATUS_LABELS = {
    STATUS_COMPLETED: "Concluída",
    STATUS_IN_PROGRESS: "Em andamento",
    STATUS_NOT_STARTED: "Não iniciada",
}

DUE_FILTERS = ("all", "overdue", "today", "upcoming", "none")


@dataclass(frozen=True)
class Progress:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    completed_pct: int = 0
    in_progress_pct: int = 0
    not_started_pct: int = 0


@dataclass
class ProjectColumn:
    project: Dict[str, Any]
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    progress: Progress = field(default_factory=Progress)


def _status_of(task: Dict[str, Any]) -> str:
    if task.get("completed"):
        return STATUS_COMPLETED
    return task.get("status") or STATUS_NOT_STARTED


def _sort_key(task: Dict[str, Any]) -> Tuple[int, int, int]:
    return (
        PRIORITY_ORDER.get(task.get("priority") or "medium", 1),
        int(task.get("position") or 0),
        int(task.get("id") or 0),
    )


def order_project_tasks(tasks: Iterable[Dict[str, Any]], project_id: Any) -> List[Dict[str, Any]]:
    """Return the project's tasks as one flat hierarchical list.

    Main tasks are sorted by priority then position; each is followed by
    its subtasks sorted by position. Subtasks whose parent is not in the
    list go at the end.
    """
    own = [t for t in tasks if t.get("project_id") == project_id]
    main = sorted((t for t in own if t.get("parent_task_id") is None), key=_sort_key)
    main_ids = {t["id"] for t in main}

    children: Dict[Any, List[Dict[str, Any]]] = {}
    orphans = []
    for t in own:
        parent = t.get("parent_task_id")
        if parent is None:
            continue
        if parent in main_ids:
            children.setdefault(parent, []).append(t)
        else:
            orphans.append(t)

    def by_position(t):
        return (int(t.get("position") or 0), int(t.get("id") or 0))

    out: List[Dict[str, Any]] = []
    for t in main:
        out.append(t)
        out.extend(sorted(children.get(t["id"], []), key=by_position))
    out.extend(sorted(orphans, key=by_position))
    return out


def _apportion(counts: Sequence[int]) -> List[int]:
    """Integer percentages summing to 100 (largest remainder)."""
    total = sum(counts)
    if total == 0:
        return [0 for _ in counts]
    raw = [c * 100 / total for c in counts]
    floors = [int(r) for r in raw]
    short = 100 - sum(floors)
    # ties go to the earlier bucket
    order = sorted(range(len(counts)), key=lambda i: (-(raw[i] - floors[i]), i))
    for i in order[:short]:
        floors[i] += 1
    return floors


def project_progress(tasks: Iterable[Dict[str, Any]]) -> Progress:
    counts = {STATUS_COMPLETED: 0, STATUS_IN_PROGRESS: 0, STATUS_NOT_STARTED: 0}
    for t in tasks:
        counts[_status_of(t)] = counts.get(_status_of(t), 0) + 1
    done, doing, todo = counts[STATUS_COMPLETED], counts[STATUS_IN_PROGRESS], counts[STATUS_NOT_STARTED]
    pct = _apportion([done, doing, todo])
    return Progress(
        total=done + doing + todo,
        completed=done,
        in_progress=doing,
        not_started=todo,
        completed_pct=pct[0],
        in_progress_pct=pct[1],
        not_started_pct=pct[2],
    )


def group_board(
    projects: Sequence[Dict[str, Any]],
    tasks: Sequence[Dict[str, Any]],
    visible: Optional[Sequence[Dict[str, Any]]] = None,
) -> List[ProjectColumn]:
    """One column per project, in project position order.

    Progress always counts every task of the project; ``visible`` (the
    filtered tasks, default all) only decides which rows the column shows.
    """
    shown = tasks if visible is None else visible
    columns = []
    for p in sorted(projects, key=lambda p: (int(p.get("position") or 0), int(p.get("id") or 0))):
        progress = project_progress(t for t in tasks if t.get("project_id") == p["id"])
        columns.append(ProjectColumn(project=p, tasks=order_project_tasks(shown, p["id"]), progress=progress))
    return columns


def due_state(due_date: Any, today: date) -> str:
    d = parse_date(due_date)
    if d is None:
        return "none"
    if d < today:
        return "overdue"
    if d == today:
        return "today"
    return "upcoming"


def task_statistics(tasks: Sequence[Dict[str, Any]], today: date) -> Dict[str, Any]:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.get("completed"))
    overdue = due_today = 0
    priority_count = {"high": 0, "medium": 0, "low": 0}
    for t in tasks:
        if t.get("completed"):
            continue
        state = due_state(t.get("due_date"), today)
        if state == "overdue":
            overdue += 1
        elif state == "today":
            due_today += 1
        priority = t.get("priority") or "medium"
        priority_count[priority] = priority_count.get(priority, 0) + 1
    return {
        "total": total,
        "completed": completed,
        "overdue": overdue,
        "due_today": due_today,
        "priority_count": priority_count,
        "completion_rate": int(completed * 100 / total + 0.5) if total else 0,
    }


def filter_tasks(
    tasks: Iterable[Dict[str, Any]],
    search: str = "",
    show_completed: bool = True,
    due_filter: str = "all",
    today: Optional[date] = None,
    label_ids: Optional[Iterable[int]] = None,
    assignee_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    if due_filter not in DUE_FILTERS:
        raise ValueError(f"Unknown due filter: {due_filter}")
    today = today or date.today()
    needle = (search or "").strip().lower()
    wanted_labels = set(label_ids or ())

    out = []
    for t in tasks:
        if not show_completed and t.get("completed"):
            continue
        if needle:
            haystack = f"{t.get('title') or ''} {t.get('description') or ''}".lower()
            if needle not in haystack:
                continue
        if due_filter != "all" and due_state(t.get("due_date"), today) != due_filter:
            continue
        if wanted_labels and not wanted_labels.intersection(t.get("label_ids") or ()):
            continue
        if assignee_id and t.get("assignee_id") != assignee_id:
            continue
        out.append(t)
    return out


def task_display(task: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Presentation hints for a task card."""
    today = today or date.today()
    status = _status_of(task)
    priority = task.get("priority") or "medium"
    state = "none" if task.get("completed") else due_state(task.get("due_date"), today)
    return {
        "title": task.get("title") or "",
        "strikethrough": bool(task.get("completed")),
        "is_subtask": task.get("parent_task_id") is not None,
        "status": status,
        "status_label": STATUS_LABELS[status],
        "priority": priority,
        "priority_label": PRIORITY_LABELS.get(priority, priority.title()),
        "due_label": format_date_br(task.get("due_date")),
        "due_class": state,
    }


def label_badges_html(label_ids: Iterable[int], labels_by_id: Dict[int, Dict[str, Any]]) -> str:
    return "".join(
        f'<span class="tb-label" style="background:{labels_by_id[i]["color"]}">{escape(labels_by_id[i]["name"])}</span>'
        for i in label_ids or ()
        if i in labels_by_id
    )


def task_card_html(task: Dict[str, Any], labels_by_id: Dict[int, Dict[str, Any]], today: Optional[date] = None) -> str:
    """Card markup: title, priority badge, label badges and due date."""
    info = task_display(task, today)
    classes = "tb-task" + (" subtask" if info["is_subtask"] else "") + (" completed" if info["strikethrough"] else "")
    due = f'<span class="tb-due-{info["due_class"]}">{info["due_label"]}</span>' if info["due_label"] else ""
    return (
        f'<div class="{classes}"><span class="tb-task-title">{escape(info["title"])}</span>'
        f'<span class="tb-badge tb-priority-{info["priority"]}">{info["priority_label"]}</span>'
        f'<br/>{label_badges_html(task.get("label_ids"), labels_by_id)} {due}</div>'
    )


def reorder(items: Sequence[Dict[str, Any]], source_index: int, destination_index: int) -> List[Dict[str, Any]]:
    """Move one item and renumber ``position`` 0..n-1 on copies."""
    moved = list(items)
    if not 0 <= source_index < len(moved):
        raise IndexError(source_index)
    item = moved.pop(source_index)
    destination_index = max(0, min(destination_index, len(moved)))
    moved.insert(destination_index, item)
    return [{**it, "position": i} for i, it in enumerate(moved)]


def next_sequence_number(projects: Iterable[Dict[str, Any]]) -> int:
    return max((int(p.get("sequence_number") or 0) for p in projects), default=0) + 1


def project_label(project: Dict[str, Any]) -> str:
    seq = project.get("sequence_number")
    return f"#{seq} - {project.get('title')}" if seq else str(project.get("title") or "")
