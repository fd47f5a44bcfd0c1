from datetime import date, timedelta

import streamlit as st

from taskboard import projects_repo, reports, tasks_repo, users_repo
from taskboard.errors import BackendError
from taskboard.timefmt import format_date_br
from taskboard.ui import get_cache, notify_error, page_setup

page_setup("Reports", icon="📈")
cache = get_cache()

st.title("Reports")

try:
    projects = cache.get(("projects", False), lambda: projects_repo.list_projects(archived=False))
    tasks = cache.get(("tasks", False), lambda: tasks_repo.list_tasks(archived=False))
    people = cache.get(("profiles", "names"), users_repo.profile_names)
except BackendError as exc:
    notify_error(exc, "Could not load report data")
    st.stop()

df = reports.tasks_frame(tasks, projects, people)

f1, f2, f3 = st.columns([2, 2, 2])
with f1:
    project_ids = [p["id"] for p in projects]
    titles = {p["id"]: p["title"] for p in projects}
    chosen_projects = st.multiselect("Projects", project_ids, format_func=titles.get, placeholder="All projects")
with f2:
    assignees = sorted(df["assignee"].dropna().unique().tolist())
    chosen_people = st.multiselect("Assignees", assignees, placeholder="Everyone")
with f3:
    end_default = date.today()
    window = st.date_input("Period", value=(end_default - timedelta(days=6), end_default))

if chosen_projects:
    df = df[df["project_id"].isin(chosen_projects)]
if chosen_people:
    df = df[df["assignee"].isin(chosen_people)]

if df.empty:
    st.info("No tasks match the selected filters.")
    st.stop()

c1, c2 = st.columns(2)
with c1:
    st.plotly_chart(reports.figure_status(df), use_container_width=True)
with c2:
    st.plotly_chart(reports.figure_priority(df), use_container_width=True)

st.subheader("Team")
c1, c2 = st.columns(2)
with c1:
    st.plotly_chart(reports.figure_workload(df), use_container_width=True)
with c2:
    st.plotly_chart(reports.figure_hours(df), use_container_width=True)

st.subheader("Weekly comparison")
if isinstance(window, (tuple, list)) and len(window) == 2:
    start, end = window
    st.caption(f"Period: {format_date_br(start)} to {format_date_br(end)}")
    st.plotly_chart(reports.figure_weekly(df, start, end), use_container_width=True)
    st.dataframe(reports.weekly_comparison(df, start, end), hide_index=True, use_container_width=True)
else:
    st.caption("Pick a start and end date to compare periods.")

st.subheader("Project evolution")
st.plotly_chart(reports.figure_project_evolution(df), use_container_width=True)
st.dataframe(reports.project_evolution(df), hide_index=True, use_container_width=True)
