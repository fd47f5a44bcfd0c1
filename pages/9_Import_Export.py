from datetime import date

import streamlit as st

from taskboard import projects_repo, tasks_repo
from taskboard.csv_io import export_filename, export_projects_csv, export_tasks_csv, parse_import_csv
from taskboard.errors import BackendError
from taskboard.io_settings import PROJECT_FIELDS, TASK_FIELDS, load_io_config, save_io_config
from taskboard.ui import get_cache, notify_error, page_setup

admin = page_setup("Import / Export", icon="🔁", role="admin")
cache = get_cache()

st.title("Import / Export")
cfg = load_io_config()

export_tab, import_tab, fields_tab = st.tabs(["Export", "Import", "Fields"])

with export_tab:
    try:
        projects = projects_repo.list_projects()
        tasks = tasks_repo.list_tasks()
    except BackendError as exc:
        notify_error(exc, "Could not load data for export")
        st.stop()
    c1, c2 = st.columns(2)
    with c1:
        st.metric("Tasks", len(tasks))
        st.download_button(
            "Download tasks CSV",
            data=export_tasks_csv(tasks, projects, cfg.enabled_fields("task")),
            file_name=export_filename(date.today()),
            mime="text/csv",
            type="primary",
        )
    with c2:
        st.metric("Projects", len(projects))
        st.download_button(
            "Download projects CSV",
            data=export_projects_csv(projects, cfg.enabled_fields("project")),
            file_name=export_filename(date.today(), prefix="projects"),
            mime="text/csv",
        )

with import_tab:
    st.caption(
        "The CSV needs a `type` column. Rows with `type=project` need a `title`; rows with "
        "`type=task` need a `title` and an existing numeric `project_id`. `position`, "
        "`description`, `due_date` and `priority` are optional."
    )
    upload = st.file_uploader("CSV file", type=["csv"])
    if upload is not None:
        try:
            new_projects, new_tasks = parse_import_csv(upload.getvalue())
        except BackendError as exc:
            st.error(str(exc))
        else:
            st.write(f"{len(new_projects)} projects and {len(new_tasks)} tasks ready to import.")
            if new_tasks:
                st.dataframe(new_tasks, use_container_width=True, hide_index=True)
            if st.button("Import", type="primary"):
                try:
                    n_projects, n_tasks = tasks_repo.bulk_insert(new_projects, new_tasks, owner_id=admin["id"])
                    cache.invalidate(("projects",), ("tasks",))
                    st.toast(f"Imported {n_projects} projects and {n_tasks} tasks", icon="✅")
                except BackendError as exc:
                    notify_error(exc, "Import failed")

with fields_tab:
    st.caption("Choose which fields appear in exports.")
    with st.form("io-fields"):
        p_col, t_col = st.columns(2)
        with p_col:
            st.markdown("**Project fields**")
            project_fields = {f: st.checkbox(f, value=cfg.project_fields.get(f, True), key=f"pf-{f}") for f in PROJECT_FIELDS}
        with t_col:
            st.markdown("**Task fields**")
            task_fields = {f: st.checkbox(f, value=cfg.task_fields.get(f, True), key=f"tf-{f}") for f in TASK_FIELDS}
        if st.form_submit_button("Save", type="primary"):
            cfg.project_fields = project_fields
            cfg.task_fields = task_fields
            try:
                save_io_config(cfg)
                st.toast("Field settings saved", icon="✅")
            except OSError as exc:
                notify_error(exc, "Could not save field settings")
