from datetime import date

import streamlit as st

from taskboard import projects_repo, tasks_repo
from taskboard.board import filter_tasks, project_label, task_display
from taskboard.errors import BackendError
from taskboard.ui import get_cache, notify_error, page_setup

page_setup("Archived Tasks", icon="🗂️")
cache = get_cache()
today = date.today()

st.title("Archived tasks")

try:
    archived = cache.get(("tasks", True), lambda: tasks_repo.list_tasks(archived=True))
    projects = cache.get(("projects", "all"), lambda: projects_repo.list_projects() + projects_repo.list_projects(archived=True))
except BackendError as exc:
    notify_error(exc, "Could not load archived tasks")
    st.stop()

by_id = {p["id"]: p for p in projects}
search = st.text_input("Search", placeholder="Title or description…")
rows = filter_tasks(archived, search=search, today=today)

if not rows:
    st.info("No archived tasks.")

for task in rows:
    info = task_display(task, today)
    project = by_id.get(task["project_id"])
    with st.container(border=True):
        c1, c2, c3 = st.columns([3, 1, 1])
        with c1:
            title = f"~~{info['title']}~~" if info["strikethrough"] else info["title"]
            st.markdown(f"**{title}** · {info['priority_label']} · {info['status_label']}")
            meta = [project_label(project) if project else "No project"]
            if info["due_label"]:
                meta.append(f"due {info['due_label']}")
            st.caption(" · ".join(meta))
        with c2:
            if st.button("Restore", key=f"restore-{task['id']}"):
                try:
                    tasks_repo.restore_task(task["id"])
                    st.toast("Task restored", icon="✅")
                    cache.invalidate(("tasks",))
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not restore the task")
        with c3:
            if st.button("Delete", key=f"delete-{task['id']}"):
                try:
                    tasks_repo.delete_task(task["id"])
                    st.toast("Task deleted", icon="🗑️")
                    cache.invalidate(("tasks",))
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not delete the task")
