import streamlit as st

from taskboard import auth
from taskboard.errors import BackendError, EmailDeliveryError, ValidationError
from taskboard.mailer import send_email
from taskboard.settings_repo import get_email_settings
from taskboard.ui import page_setup, render_footer, system_settings

page_setup("Sign in", icon="🔑", login_required=False)
settings = system_settings()


def _send_reset_email(email: str, token: str) -> bool:
    mail_cfg = get_email_settings()
    if not mail_cfg:
        return False
    body = (
        f"A password reset was requested for your {settings.get('site_name') or 'Project Board'} account.\n\n"
        f"Reset code: {token}\n\n"
        "If you did not request this, you can ignore this message."
    )
    send_email(mail_cfg, email, "Password reset", body)
    return True


user = auth.current_user(st.session_state)

if user is not None:
    st.title(f"Welcome, {user['name']}")
    st.markdown(settings.get("site_description") or "Use the sidebar to open the board.")
    st.page_link("pages/1_Board.py", label="Open the board", icon="📋")

    with st.expander("Change password"):
        with st.form("change-password"):
            current = st.text_input("Current password", type="password")
            new = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm new password", type="password")
            if st.form_submit_button("Update password"):
                if new != confirm:
                    st.error("Passwords do not match")
                else:
                    try:
                        auth.change_password(user["id"], current, new)
                        st.success("Password updated")
                    except BackendError as exc:
                        st.error(str(exc))
    render_footer(settings)
    st.stop()


st.title(settings.get("site_name") or "Project Board")
sign_in_tab, sign_up_tab, reset_tab = st.tabs(["Sign in", "Create account", "Forgot password"])

with sign_in_tab:
    with st.form("sign-in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Sign in", type="primary"):
            try:
                profile = auth.sign_in(email, password)
            except BackendError as exc:
                st.error(str(exc))
            else:
                auth.set_login_state(st.session_state, profile)
                st.rerun()

with sign_up_tab:
    with st.form("sign-up"):
        name = st.text_input("Name")
        email = st.text_input("Email", key="signup-email")
        password = st.text_input("Password", type="password", key="signup-password")
        confirm = st.text_input("Confirm password", type="password")
        if st.form_submit_button("Create account"):
            if password != confirm:
                st.error("Passwords do not match")
            else:
                try:
                    profile = auth.sign_up(name, email, password)
                except BackendError as exc:
                    st.error(str(exc))
                else:
                    st.toast("Account created", icon="✅")
                    auth.set_login_state(st.session_state, profile)
                    st.rerun()

with reset_tab:
    with st.form("request-reset"):
        email = st.text_input("Email", key="reset-email")
        if st.form_submit_button("Send reset code"):
            try:
                token = auth.request_password_reset(email)
                if token and not _send_reset_email(email, token):
                    st.info(f"Email delivery is not configured. Your reset code is: `{token}`")
                else:
                    st.success("If the address is registered, a reset code is on its way.")
            except ValidationError as exc:
                st.error(str(exc))
            except EmailDeliveryError as exc:
                st.error(f"Could not send the reset email: {exc}")
            except BackendError as exc:
                st.error(str(exc))

    with st.form("apply-reset"):
        token = st.text_input("Reset code")
        new = st.text_input("New password", type="password", key="reset-new")
        if st.form_submit_button("Set new password"):
            try:
                auth.reset_password(token.strip(), new)
                st.success("Password updated, you can sign in now.")
            except BackendError as exc:
                st.error(str(exc))

render_footer(settings)
