from datetime import date

import pytest

from taskboard import board

TODAY = date(2024, 5, 10)


def _task(id, project_id=1, priority="medium", position=0, parent=None, status="nao_iniciada", **extra):
    t = {
        "id": id,
        "project_id": project_id,
        "parent_task_id": parent,
        "priority": priority,
        "position": position,
        "status": status,
        "completed": status == "concluida",
        "title": f"task {id}",
        "description": None,
        "due_date": None,
    }
    t.update(extra)
    return t


def test_order_project_tasks_hierarchy():
    tasks = [
        _task(1, priority="low", position=0),
        _task(2, priority="high", position=5),
        _task(3, priority="high", position=1),
        _task(4, parent=2, position=1),
        _task(5, parent=2, position=0),
        _task(6, parent=99, position=0),
        _task(7, project_id=2, priority="high"),
    ]
    ordered = [t["id"] for t in board.order_project_tasks(tasks, 1)]
    assert ordered == [3, 2, 5, 4, 1, 6]


def test_progress_percentages_sum_to_100():
    tasks = [_task(1, status="concluida"), _task(2, status="em_andamento"), _task(3)]
    p = board.project_progress(tasks)
    assert (p.completed, p.in_progress, p.not_started) == (1, 1, 1)
    assert p.completed_pct + p.in_progress_pct + p.not_started_pct == 100
    assert sorted([p.completed_pct, p.in_progress_pct, p.not_started_pct]) == [33, 33, 34]


@pytest.mark.parametrize("counts", [(1, 0, 0), (2, 1, 0), (1, 1, 5), (7, 3, 1), (0, 0, 9)])
def test_progress_sums_for_various_mixes(counts):
    done, doing, todo = counts
    tasks = (
        [_task(i, status="concluida") for i in range(done)]
        + [_task(100 + i, status="em_andamento") for i in range(doing)]
        + [_task(200 + i) for i in range(todo)]
    )
    p = board.project_progress(tasks)
    assert p.total == sum(counts)
    assert p.completed_pct + p.in_progress_pct + p.not_started_pct == 100


def test_progress_empty_project():
    p = board.project_progress([])
    assert (p.total, p.completed_pct, p.in_progress_pct, p.not_started_pct) == (0, 0, 0, 0)


def test_completed_flag_wins_over_status():
    p = board.project_progress([_task(1, status="em_andamento", completed=True)])
    assert p.completed == 1


def test_group_board_follows_project_position():
    projects = [{"id": 1, "position": 1, "title": "B"}, {"id": 2, "position": 0, "title": "A"}]
    tasks = [_task(1, project_id=1, status="concluida"), _task(2, project_id=2)]
    columns = board.group_board(projects, tasks)
    assert [c.project["title"] for c in columns] == ["A", "B"]
    assert columns[1].progress.completed_pct == 100
    assert [t["id"] for t in columns[0].tasks] == [2]


def test_group_board_progress_ignores_filters():
    projects = [{"id": 1, "position": 0, "title": "A"}]
    tasks = [_task(1, status="concluida"), _task(2)]
    visible = board.filter_tasks(tasks, show_completed=False, today=TODAY)

    [column] = board.group_board(projects, tasks, visible)
    assert [t["id"] for t in column.tasks] == [2]
    assert column.progress.total == 2
    assert (column.progress.completed_pct, column.progress.in_progress_pct, column.progress.not_started_pct) == (50, 0, 50)


@pytest.mark.parametrize(
    "due,expected",
    [(None, "none"), ("2024-05-09", "overdue"), ("2024-05-10", "today"), ("2024-05-11", "upcoming")],
)
def test_due_state(due, expected):
    assert board.due_state(due, TODAY) == expected


def test_task_statistics():
    tasks = [
        _task(1, status="concluida", due_date="2024-05-01", priority="high"),
        _task(2, due_date="2024-05-01", priority="high"),
        _task(3, due_date="2024-05-10", priority="low"),
        _task(4, due_date="2024-06-01"),
    ]
    stats = board.task_statistics(tasks, TODAY)
    assert stats["total"] == 4
    assert stats["completed"] == 1
    assert stats["overdue"] == 1
    assert stats["due_today"] == 1
    assert stats["priority_count"] == {"high": 1, "medium": 1, "low": 1}
    assert stats["completion_rate"] == 25
    assert board.task_statistics([], TODAY)["completion_rate"] == 0


def test_filter_tasks():
    tasks = [
        _task(1, title="Write Docs", status="concluida"),
        _task(2, title="Fix login", description="The DOCS page too", due_date="2024-05-01"),
        _task(3, title="Deploy", due_date="2024-05-20", label_ids=[7], assignee_id="u1"),
    ]
    assert [t["id"] for t in board.filter_tasks(tasks, search="docs", today=TODAY)] == [1, 2]
    assert [t["id"] for t in board.filter_tasks(tasks, search="docs", show_completed=False, today=TODAY)] == [2]
    assert [t["id"] for t in board.filter_tasks(tasks, due_filter="overdue", today=TODAY)] == [2]
    assert [t["id"] for t in board.filter_tasks(tasks, due_filter="none", today=TODAY)] == [1]
    assert [t["id"] for t in board.filter_tasks(tasks, label_ids=[7], today=TODAY)] == [3]
    assert [t["id"] for t in board.filter_tasks(tasks, assignee_id="u1", today=TODAY)] == [3]
    with pytest.raises(ValueError):
        board.filter_tasks(tasks, due_filter="someday")


def test_completed_tasks_display_strikethrough():
    done = board.task_display(_task(1, status="concluida", due_date="2024-01-01"), TODAY)
    open_ = board.task_display(_task(2, priority="high", due_date="2024-01-01", parent=1), TODAY)
    assert done["strikethrough"] is True
    assert done["status_label"] == "Concluída"
    assert done["due_class"] == "none"
    assert open_["strikethrough"] is False
    assert open_["priority_label"] == "High"
    assert open_["due_class"] == "overdue"
    assert open_["due_label"] == "01/01/2024"
    assert open_["is_subtask"] is True


def test_reorder_renumbers_positions():
    items = [{"id": i, "position": i} for i in range(4)]
    moved = board.reorder(items, 3, 0)
    assert [i["id"] for i in moved] == [3, 0, 1, 2]
    assert [i["position"] for i in moved] == [0, 1, 2, 3]
    assert items[3]["position"] == 3
    with pytest.raises(IndexError):
        board.reorder(items, 9, 0)


def test_sequence_helpers():
    assert board.next_sequence_number([]) == 1
    assert board.next_sequence_number([{"sequence_number": 4}, {"sequence_number": None}]) == 5
    assert board.project_label({"sequence_number": 3, "title": "Site"}) == "#3 - Site"


def test_task_card_html_renders_badges():
    labels = {7: {"id": 7, "name": "Bug <ui>", "color": "#EF4444"}}
    sub = _task(2, parent=1, priority="high", due_date="2024-05-09", label_ids=[7, 99])
    html = board.task_card_html(sub, labels, TODAY)
    assert 'class="tb-task subtask"' in html
    assert "tb-priority-high" in html
    assert "Bug &lt;ui&gt;" in html
    assert html.count("tb-label") == 1
    assert 'class="tb-due-overdue">09/05/2024' in html


def test_archived_project_listing_keeps_hierarchy():
    tasks = [_task(1), _task(2, parent=1, status="concluida"), _task(3, priority="high")]
    cards = [board.task_card_html(t, {}, TODAY) for t in board.order_project_tasks(tasks, 1)]
    assert [c.split('tb-task-title">')[1].split("<")[0] for c in cards] == ["task 3", "task 1", "task 2"]
    assert 'class="tb-task subtask completed"' in cards[2]
