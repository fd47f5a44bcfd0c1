import streamlit as st

from taskboard import users_repo
from taskboard.errors import BackendError
from taskboard.timefmt import format_date_br
from taskboard.ui import get_cache, notify_error, page_setup

admin = page_setup("User Profiles", icon="👥", role="admin")
cache = get_cache()

st.title("User profiles")

search = st.text_input("Search users", placeholder="Name or email…")
try:
    profiles = users_repo.list_profiles(search)
except BackendError as exc:
    notify_error(exc, "Could not load profiles")
    st.stop()

left, right = st.columns([1, 2])
with left:
    if not profiles:
        st.info("No users found.")
    ids = [p["id"] for p in profiles]
    names = {p["id"]: f"{p['name']} · {p['email']}" for p in profiles}
    selected_id = st.radio("Users", ids, format_func=names.get, label_visibility="collapsed") if ids else None

with right:
    selected = next((p for p in profiles if p["id"] == selected_id), None)
    if selected is None:
        st.caption("Select a user to edit.")
    else:
        st.caption(f"Member since {format_date_br(selected['created_at'])}")
        with st.form(f"profile-{selected['id']}"):
            name = st.text_input("Name", value=selected["name"])
            email = st.text_input("Email", value=selected["email"])
            if st.form_submit_button("Save", type="primary"):
                try:
                    users_repo.update_profile(selected["id"], name=name, email=email)
                    cache.invalidate(("profiles",))
                    st.toast("Profile updated", icon="✅")
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not update the profile")

        roles = users_repo.list_roles()
        held = {r["id"] for r in users_repo.get_user_roles(selected["id"])}
        st.markdown("**Roles**")
        for role in roles:
            checked = st.checkbox(role["name"], value=role["id"] in held, key=f"role-{selected['id']}-{role['id']}")
            if checked != (role["id"] in held):
                try:
                    users_repo.toggle_role(selected["id"], role["id"], checked)
                    st.toast(f"Role {role['name']} {'granted' if checked else 'revoked'}", icon="🛡️")
                except BackendError as exc:
                    notify_error(exc, "Could not update roles")

        if selected["id"] != admin["id"]:
            confirm = st.checkbox("I understand this removes the user", key=f"confirm-del-{selected['id']}")
            if st.button("Delete user", disabled=not confirm):
                try:
                    users_repo.delete_profile(selected["id"])
                    cache.invalidate(("profiles",))
                    st.toast("User deleted", icon="🗑️")
                    st.rerun()
                except BackendError as exc:
                    notify_error(exc, "Could not delete the user")
