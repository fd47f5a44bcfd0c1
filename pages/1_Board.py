from datetime import date, datetime, time as dtime
from html import escape

import streamlit as st

from taskboard import (
    attachments_repo,
    comments_repo,
    labels_repo,
    projects_repo,
    tasks_repo,
    time_repo,
    users_repo,
)
from taskboard.board import (
    DUE_FILTERS,
    PRIORITY_LABELS,
    STATUS_LABELS,
    filter_tasks,
    group_board,
    label_badges_html,
    project_label,
    task_card_html,
    task_display,
    task_statistics,
)
from taskboard.csv_io import export_filename, export_tasks_csv
from taskboard.errors import BackendError
from taskboard.io_settings import enabled_fields
from taskboard.models import PRIORITIES, TASK_STATUSES
from taskboard.timefmt import format_date_br, format_duration, format_seconds_hhmmss, parse_date, parse_hhmmss_seconds
from taskboard.ui import fetch_or_default, get_cache, notify_error, page_setup, render_footer, system_settings

user = page_setup("Board", icon="📋")
cache = get_cache()
today = date.today()

DUE_FILTER_LABELS = {
    "all": "All due dates",
    "overdue": "Overdue",
    "today": "Due today",
    "upcoming": "Upcoming",
    "none": "No due date",
}
COLUMNS_PER_ROW = 3


def load_projects():
    return cache.get(("projects", False), lambda: projects_repo.list_projects(archived=False))


def load_tasks():
    return cache.get(("tasks", False), lambda: tasks_repo.list_tasks(archived=False))


def load_labels():
    return cache.get(("labels",), labels_repo.list_labels)


def load_people():
    return cache.get(("profiles", "names"), users_repo.profile_names)


def refresh(*keys):
    cache.invalidate(*keys)
    st.rerun()


def run(action, message, *keys):
    """Run a repository call; toast failures, refresh ``keys`` on success."""
    try:
        action()
    except BackendError as exc:
        notify_error(exc, message)
        return False
    if keys:
        cache.invalidate(*keys)
    return True


def toggle_completed(task_id):
    def update(rows):
        for t in rows or []:
            if t["id"] == task_id:
                t["completed"] = not t["completed"]
                t["status"] = "concluida" if t["completed"] else "nao_iniciada"
        return rows

    try:
        cache.optimistic(
            ("tasks", False),
            update,
            lambda: tasks_repo.toggle_completed(task_id),
            invalidate=(("tasks",),),
        )
    except BackendError as exc:
        notify_error(exc, "Could not update the task")


# ---------------- Dialogs ----------------

def _project_form_fields(prefix, project=None):
    project = project or {}
    title = st.text_input("Title", value=project.get("title") or "", key=f"{prefix}-title")
    description = st.text_area("Description", value=project.get("description") or "", key=f"{prefix}-desc")
    analyst = st.text_input("Analyst", value=project.get("analyst") or "", key=f"{prefix}-analyst")
    c1, c2 = st.columns(2)
    with c1:
        estimated_value = st.number_input(
            "Estimated value", min_value=0.0, value=float(project.get("estimated_value") or 0), key=f"{prefix}-ev"
        )
        estimated_end = st.date_input(
            "Estimated end date", value=parse_date(project.get("estimated_end_date")), key=f"{prefix}-eed"
        )
        estimated_hours = st.text_input(
            "Estimated hours (hh:mm:ss)",
            value=format_seconds_hhmmss(project.get("estimated_hours")),
            key=f"{prefix}-eh",
        )
    with c2:
        actual_value = st.number_input(
            "Actual value", min_value=0.0, value=float(project.get("actual_value") or 0), key=f"{prefix}-av"
        )
        actual_end = st.date_input("Actual end date", value=parse_date(project.get("actual_end_date")), key=f"{prefix}-aed")
        actual_hours = st.text_input(
            "Actual hours (hh:mm:ss)",
            value=format_seconds_hhmmss(project.get("actual_hours")),
            key=f"{prefix}-ah",
        )
    return {
        "title": title,
        "description": description,
        "analyst": analyst,
        "estimated_value": estimated_value,
        "actual_value": actual_value,
        "estimated_end_date": estimated_end,
        "actual_end_date": actual_end,
        "estimated_hours": parse_hhmmss_seconds(estimated_hours),
        "actual_hours": parse_hhmmss_seconds(actual_hours),
    }


@st.dialog("New project", width="large")
def new_project_dialog():
    data = _project_form_fields("new-project")
    if st.button("Create project", type="primary"):
        if run(lambda: projects_repo.create_project(data, owner_id=user["id"]), "Could not create the project", ("projects",)):
            st.rerun()


@st.dialog("Project details", width="large")
def project_dialog(project):
    st.caption(project_label(project))
    data = _project_form_fields(f"project-{project['id']}", project)
    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("Save", type="primary", key=f"psave-{project['id']}"):
            if run(lambda: projects_repo.update_project(project["id"], data), "Could not save the project", ("projects",)):
                st.rerun()
    with c2:
        if st.button("Archive", key=f"parch-{project['id']}"):
            if run(lambda: projects_repo.archive_project(project["id"]), "Could not archive the project", ("projects",)):
                st.rerun()
    with c3:
        if st.button("Delete", key=f"pdel-{project['id']}"):
            if run(lambda: projects_repo.delete_project(project["id"]), "Could not delete the project", ("projects",), ("tasks",)):
                st.rerun()


def _task_form_fields(prefix, task, people, labels):
    task = task or {}
    title = st.text_input("Title", value=task.get("title") or "", key=f"{prefix}-title")
    description = st.text_area("Description", value=task.get("description") or "", key=f"{prefix}-desc")
    c1, c2 = st.columns(2)
    with c1:
        priority = st.selectbox(
            "Priority",
            PRIORITIES,
            index=PRIORITIES.index(task.get("priority") or "medium"),
            format_func=PRIORITY_LABELS.get,
            key=f"{prefix}-prio",
        )
        due_date = st.date_input("Due date", value=parse_date(task.get("due_date")), key=f"{prefix}-due")
    with c2:
        status = st.selectbox(
            "Status",
            TASK_STATUSES,
            index=TASK_STATUSES.index(task.get("status") or "nao_iniciada"),
            format_func=STATUS_LABELS.get,
            key=f"{prefix}-status",
        )
        assignee_ids = [None] + list(people)
        current = task.get("assignee_id")
        assignee_id = st.selectbox(
            "Assignee",
            assignee_ids,
            index=assignee_ids.index(current) if current in assignee_ids else 0,
            format_func=lambda pid: people.get(pid, "Unassigned") if pid else "Unassigned",
            key=f"{prefix}-assignee",
        )
    label_map = {lb["id"]: lb["name"] for lb in labels}
    label_ids = st.multiselect(
        "Labels",
        list(label_map),
        default=[i for i in task.get("label_ids") or [] if i in label_map],
        format_func=label_map.get,
        key=f"{prefix}-labels",
    )
    data = {
        "title": title,
        "description": description,
        "priority": priority,
        "due_date": due_date,
        "status": status,
        "assignee_id": assignee_id,
    }
    return data, label_ids


@st.dialog("New task", width="large")
def new_task_dialog(project_id, parent_task_id=None):
    people = fetch_or_default(load_people, "Could not load people", {})
    labels = fetch_or_default(load_labels, "Could not load labels", [])
    data, label_ids = _task_form_fields("new-task", None, people, labels)
    data["project_id"] = project_id
    data["parent_task_id"] = parent_task_id
    if st.button("Create task", type="primary"):
        if run(lambda: tasks_repo.create_task(data, label_ids), "Could not create the task", ("tasks",)):
            st.rerun()


def _comments_tab(task):
    for c in fetch_or_default(lambda: comments_repo.list_comments(task["id"]), "Could not load comments", []):
        st.markdown(f"**{escape(c['author_name'])}** · {format_date_br(c['created_at'])}")
        st.write(c["content"])
        if c["author_id"] == user["id"] and st.button("Delete comment", key=f"cdel-{c['id']}"):
            if run(lambda: comments_repo.delete_comment(c["id"], user["id"]), "Could not delete the comment"):
                st.rerun()
    content = st.text_area("Add a comment", key=f"cnew-{task['id']}")
    if st.button("Post comment", key=f"cpost-{task['id']}"):
        if run(lambda: comments_repo.add_comment(task["id"], user["id"], content), "Could not add the comment"):
            st.rerun()


def _attachments_tab(task):
    for a in fetch_or_default(lambda: attachments_repo.list_attachments(task["id"]), "Could not load attachments", []):
        c1, c2 = st.columns([3, 1])
        with c1:
            try:
                meta, data = attachments_repo.download_attachment(a["id"])
            except BackendError as exc:
                st.warning(f"{a['file_name']}: {exc}")
            else:
                st.download_button(
                    f"⬇ {meta['file_name']}",
                    data=data,
                    file_name=meta["file_name"],
                    mime=meta.get("content_type") or "application/octet-stream",
                    key=f"adl-{a['id']}",
                )
        with c2:
            if st.button("Remove", key=f"adel-{a['id']}"):
                if run(lambda: attachments_repo.delete_attachment(a["id"]), "Could not delete the attachment"):
                    st.rerun()
    upload = st.file_uploader("Upload a file", key=f"aup-{task['id']}")
    if upload is not None and st.button("Attach", key=f"aadd-{task['id']}"):
        if run(
            lambda: attachments_repo.upload_attachment(task["id"], upload.name, upload.getvalue(), upload.type, user["id"]),
            "Could not upload the file",
        ):
            st.rerun()


def _time_tab(task):
    entries = fetch_or_default(lambda: time_repo.list_time_entries(task["id"]), "Could not load time entries", [])
    logged = fetch_or_default(lambda: time_repo.total_seconds(task["id"]), "Could not total time", 0)
    st.metric("Logged", format_seconds_hhmmss(logged))
    for e in entries:
        c1, c2 = st.columns([3, 1])
        with c1:
            st.write(f"{e['start_time'][:16].replace('T', ' ')} → {e['end_time'][11:16]} · {format_duration(e['duration'])}")
        with c2:
            if st.button("Delete", key=f"tdel-{e['id']}"):
                if run(lambda: time_repo.delete_time_entry(e["id"]), "Could not delete the entry", ("tasks",)):
                    st.rerun()
    c1, c2, c3 = st.columns(3)
    with c1:
        day = st.date_input("Day", value=today, key=f"tday-{task['id']}")
    with c2:
        start = st.time_input("Start", value=dtime(9, 0), key=f"tstart-{task['id']}")
    with c3:
        end = st.time_input("End", value=dtime(10, 0), key=f"tend-{task['id']}")
    if st.button("Log time", key=f"tlog-{task['id']}"):
        if run(
            lambda: time_repo.log_time(task["id"], datetime.combine(day, start), datetime.combine(day, end)),
            "Could not log time",
            ("tasks",),
        ):
            st.rerun()


@st.dialog("Task details", width="large")
def task_dialog(task):
    people = fetch_or_default(load_people, "Could not load people", {})
    labels = fetch_or_default(load_labels, "Could not load labels", [])
    projects = fetch_or_default(load_projects, "Could not load projects", [])
    details, comments, files, hours, move = st.tabs(["Details", "Comments", "Attachments", "Time", "Move"])

    with details:
        data, label_ids = _task_form_fields(f"task-{task['id']}", task, people, labels)
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            if st.button("Save", type="primary", key=f"tsave-{task['id']}"):
                if run(lambda: tasks_repo.update_task(task["id"], data, label_ids), "Could not save the task", ("tasks",)):
                    st.rerun()
        with c2:
            if task.get("parent_task_id") is None and st.button("Add subtask", key=f"tsub-{task['id']}"):
                st.session_state["board_new_subtask"] = (task["project_id"], task["id"])
                st.rerun()
        with c3:
            if st.button("Archive", key=f"tarch-{task['id']}"):
                if run(lambda: tasks_repo.archive_task(task["id"]), "Could not archive the task", ("tasks",)):
                    st.rerun()
        with c4:
            if st.button("Delete", key=f"tdelete-{task['id']}"):
                if run(lambda: tasks_repo.delete_task(task["id"]), "Could not delete the task", ("tasks",)):
                    st.rerun()

    with comments:
        _comments_tab(task)
    with files:
        _attachments_tab(task)
    with hours:
        _time_tab(task)
    with move:
        ids = [p["id"] for p in projects]
        target = st.selectbox(
            "Project",
            ids,
            index=ids.index(task["project_id"]) if task["project_id"] in ids else 0,
            format_func=lambda pid: project_label(next(p for p in projects if p["id"] == pid)),
            key=f"tmove-proj-{task['id']}",
        )
        position = st.number_input("Position", min_value=0, value=int(task.get("position") or 0), key=f"tmove-pos-{task['id']}")
        if st.button("Move", key=f"tmove-{task['id']}"):
            if run(lambda: tasks_repo.move_task(task["id"], target, int(position)), "Could not move the task", ("tasks",)):
                st.rerun()


# ---------------- Filters ----------------

st.title(system_settings().get("site_name") or "Project Board")

try:
    projects = load_projects()
    tasks = load_tasks()
    labels = load_labels()
except BackendError as exc:
    notify_error(exc, "Could not load the board")
    st.stop()

fc1, fc2, fc3, fc4, fc5 = st.columns([2.2, 1, 1.2, 1.4, 0.6])
with fc1:
    search = st.text_input("Search tasks", placeholder="Title or description…")
with fc2:
    show_completed = st.toggle("Show completed", value=True)
with fc3:
    due_filter = st.selectbox("Due date", DUE_FILTERS, format_func=DUE_FILTER_LABELS.get)
with fc4:
    label_names = {lb["id"]: lb["name"] for lb in labels}
    label_filter = st.multiselect("Labels", list(label_names), format_func=label_names.get)
with fc5:
    if st.button("↻", help="Reload from the database"):
        refresh()

visible = filter_tasks(tasks, search, show_completed, due_filter, today, label_ids=label_filter)

stats = task_statistics(tasks, today)
k1, k2, k3, k4, k5 = st.columns(5)
k1.metric("Completion rate", f"{stats['completion_rate']}%")
k2.metric("Total tasks", stats["total"])
k3.metric("Overdue", stats["overdue"])
k4.metric("Due today", stats["due_today"])
k5.metric("Open high priority", stats["priority_count"].get("high", 0))

a1, a2, a3, _ = st.columns([1, 1, 1, 3])
with a1:
    if st.button("＋ Project", type="primary"):
        new_project_dialog()
with a2:
    st.download_button(
        "Export CSV",
        data=export_tasks_csv(tasks, projects, enabled_fields("task")),
        file_name=export_filename(today),
        mime="text/csv",
    )
with a3:
    with st.popover("Labels"):
        for lb in labels:
            lc1, lc2 = st.columns([3, 1])
            lc1.markdown(label_badges_html([lb["id"]], {lb["id"]: lb}), unsafe_allow_html=True)
            if lc2.button("✕", key=f"ldel-{lb['id']}"):
                if run(lambda: labels_repo.delete_label(lb["id"]), "Could not delete the label", ("labels",), ("tasks",)):
                    st.rerun()
        new_label = st.text_input("New label")
        new_color = st.color_picker("Color", value="#0EA5E9")
        if st.button("Add label"):
            if run(lambda: labels_repo.create_label(new_label, new_color, user["id"]), "Could not create the label", ("labels",)):
                st.rerun()

pending_subtask = st.session_state.pop("board_new_subtask", None)
if pending_subtask:
    new_task_dialog(*pending_subtask)

# ---------------- Board ----------------

if not projects:
    st.info("No projects yet. Create the first one to get started.")

columns = group_board(projects, tasks, visible)
label_lookup = {lb["id"]: lb for lb in labels}

for row_start in range(0, len(columns), COLUMNS_PER_ROW):
    row = columns[row_start:row_start + COLUMNS_PER_ROW]
    cols = st.columns(COLUMNS_PER_ROW)
    for offset, (col, column) in enumerate(zip(cols, row)):
        index = row_start + offset
        project = column.project
        progress = column.progress
        with col:
            with st.container(border=True):
                st.markdown(f'<div class="tb-project-title">{escape(project_label(project))}</div>', unsafe_allow_html=True)
                st.markdown(
                    '<div class="tb-progress">'
                    f'<div class="done" style="width:{progress.completed_pct}%"></div>'
                    f'<div class="doing" style="width:{progress.in_progress_pct}%"></div>'
                    f'<div class="todo" style="width:{progress.not_started_pct}%"></div>'
                    "</div>",
                    unsafe_allow_html=True,
                )
                st.caption(
                    f"{progress.completed_pct}% concluída · {progress.in_progress_pct}% em andamento · "
                    f"{progress.not_started_pct}% não iniciada"
                )

                for task in column.tasks:
                    info = task_display(task, today)
                    t1, t2, t3 = st.columns([0.12, 0.7, 0.18])
                    with t1:
                        st.checkbox(
                            "Done",
                            value=info["strikethrough"],
                            key=f"done-{task['id']}",
                            label_visibility="collapsed",
                            on_change=toggle_completed,
                            args=(task["id"],),
                        )
                    with t2:
                        st.markdown(task_card_html(task, label_lookup, today), unsafe_allow_html=True)
                    with t3:
                        if st.button("⋯", key=f"open-{task['id']}"):
                            task_dialog(task)

                b1, b2, b3, b4 = st.columns(4)
                with b1:
                    if st.button("＋", key=f"addtask-{project['id']}", help="New task"):
                        new_task_dialog(project["id"])
                with b2:
                    if st.button("✎", key=f"editp-{project['id']}", help="Project details"):
                        project_dialog(project)
                with b3:
                    if index > 0 and st.button("◀", key=f"left-{project['id']}", help="Move left"):
                        order = [c.project["id"] for c in columns]
                        order.insert(index - 1, order.pop(index))
                        if run(lambda: projects_repo.reorder_projects(order), "Could not reorder projects", ("projects",)):
                            st.rerun()
                with b4:
                    if index < len(columns) - 1 and st.button("▶", key=f"right-{project['id']}", help="Move right"):
                        order = [c.project["id"] for c in columns]
                        order.insert(index + 1, order.pop(index))
                        if run(lambda: projects_repo.reorder_projects(order), "Could not reorder projects", ("projects",)):
                            st.rerun()

render_footer(system_settings())
