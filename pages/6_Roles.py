import streamlit as st

from taskboard import users_repo
from taskboard.errors import BackendError
from taskboard.ui import notify_error, page_setup

page_setup("Roles", icon="🛡️", role="admin")

st.title("Roles")

try:
    roles = users_repo.list_roles()
except BackendError as exc:
    notify_error(exc, "Could not load roles")
    st.stop()

for role in roles:
    with st.container(border=True):
        c1, c2 = st.columns([4, 1])
        with c1:
            st.markdown(f"**{role['name']}**")
            if role.get("description"):
                st.caption(role["description"])
        with c2:
            if role["name"] != "admin" and st.button("Delete", key=f"role-del-{role['id']}"):
                try:
                    users_repo.delete_role(role["id"])
                    st.toast(f"Role {role['name']} deleted", icon="🗑️")
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not delete the role")

st.subheader("New role")
with st.form("new-role", clear_on_submit=True):
    name = st.text_input("Name")
    description = st.text_input("Description")
    if st.form_submit_button("Create role", type="primary"):
        try:
            users_repo.create_role(name, description)
            st.toast("Role created", icon="✅")
            st.rerun()
        except BackendError as exc:
            notify_error(exc, "Could not create the role")

st.subheader("Assign roles")
try:
    profiles = users_repo.list_profiles()
except BackendError as exc:
    notify_error(exc, "Could not load users")
    st.stop()

if profiles and roles:
    c1, c2, c3 = st.columns([2, 2, 1])
    names = {p["id"]: p["name"] for p in profiles}
    role_names = {r["id"]: r["name"] for r in roles}
    with c1:
        profile_id = st.selectbox("User", list(names), format_func=names.get)
    with c2:
        role_id = st.selectbox("Role", list(role_names), format_func=role_names.get)
    held = users_repo.user_has_role(profile_id, role_names[role_id])
    with c3:
        label = "Revoke" if held else "Grant"
        if st.button(label):
            try:
                users_repo.toggle_role(profile_id, role_id, not held)
                st.toast(f"{role_names[role_id]} {'revoked from' if held else 'granted to'} {names[profile_id]}", icon="🛡️")
                st.rerun()
            except BackendError as exc:
                notify_error(exc, "Could not update roles")
