from datetime import date

import streamlit as st

from taskboard import labels_repo, projects_repo, tasks_repo
from taskboard.board import order_project_tasks, project_label, project_progress, task_card_html
from taskboard.errors import BackendError
from taskboard.timefmt import format_date_br, format_seconds_hhmmss
from taskboard.ui import get_cache, notify_error, page_setup

page_setup("Archived Projects", icon="🗃️")
cache = get_cache()
today = date.today()

st.title("Archived projects")

try:
    archived = cache.get(("projects", True), lambda: projects_repo.list_projects(archived=True))
    tasks = cache.get(("tasks", "all-for-archived"), lambda: tasks_repo.list_tasks() + tasks_repo.list_tasks(archived=True))
    labels = {lb["id"]: lb for lb in cache.get(("labels",), labels_repo.list_labels)}
except BackendError as exc:
    notify_error(exc, "Could not load archived projects")
    st.stop()

if not archived:
    st.info("No archived projects.")

for project in archived:
    own = [t for t in tasks if t["project_id"] == project["id"]]
    progress = project_progress(own)
    with st.container(border=True):
        c1, c2, c3 = st.columns([3, 1, 1])
        with c1:
            st.markdown(f"**{project_label(project)}**")
            if project.get("description"):
                st.caption(project["description"])
            st.write(
                f"{progress.total} tasks · {progress.completed_pct}% concluída · "
                f"Estimated {format_seconds_hhmmss(project.get('estimated_hours'))} · "
                f"Actual {format_seconds_hhmmss(project.get('actual_hours'))}"
            )
            if project.get("actual_end_date"):
                st.caption(f"Finished {format_date_br(project['actual_end_date'])}")
            with st.expander(f"Tasks ({progress.total})"):
                for task in order_project_tasks(own, project["id"]):
                    st.markdown(task_card_html(task, labels, today), unsafe_allow_html=True)
                if not own:
                    st.caption("No tasks.")
        with c2:
            if st.button("Restore", key=f"restore-{project['id']}"):
                try:
                    projects_repo.restore_project(project["id"])
                    st.toast("Project restored", icon="✅")
                    cache.invalidate(("projects",))
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not restore the project")
        with c3:
            confirm = st.checkbox("Confirm", key=f"confirm-{project['id']}")
            if st.button("Delete", key=f"delete-{project['id']}", disabled=not confirm):
                try:
                    projects_repo.delete_project(project["id"])
                    st.toast("Project deleted", icon="🗑️")
                    cache.invalidate(("projects",), ("tasks",))
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not delete the project")
