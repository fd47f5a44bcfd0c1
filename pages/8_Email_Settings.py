import streamlit as st

from taskboard.errors import BackendError
from taskboard.mailer import send_test_email, validate_email_settings
from taskboard.settings_repo import get_email_settings, list_email_templates, save_email_settings, save_email_template
from taskboard.ui import notify_error, page_setup

admin = page_setup("Email Settings", icon="✉️", role="admin")

st.title("Email settings")

try:
    current = get_email_settings() or {}
except BackendError as exc:
    notify_error(exc, "Could not load email settings")
    st.stop()

with st.form("smtp"):
    c1, c2 = st.columns([3, 1])
    with c1:
        host = st.text_input("SMTP host", value=current.get("smtp_host") or "")
    with c2:
        port = st.number_input("Port", min_value=1, max_value=65535, value=int(current.get("smtp_port") or 587))
    use_ssl = st.toggle("Use SSL/TLS", value=bool(current.get("smtp_ssl", True)), help="Port 465 uses implicit SSL, other ports STARTTLS.")
    u1, u2 = st.columns(2)
    with u1:
        username = st.text_input("Username", value=current.get("smtp_username") or "")
    with u2:
        password = st.text_input("Password", value=current.get("smtp_password") or "", type="password")
    s1, s2 = st.columns(2)
    with s1:
        sender_email = st.text_input("Sender email", value=current.get("sender_email") or "")
    with s2:
        sender_name = st.text_input("Sender name", value=current.get("sender_name") or "")

    if st.form_submit_button("Save", type="primary"):
        values = {
            "smtp_host": host,
            "smtp_port": port,
            "smtp_ssl": use_ssl,
            "smtp_username": username or None,
            "smtp_password": password or None,
            "sender_email": sender_email,
            "sender_name": sender_name or None,
        }
        problems = validate_email_settings(values)
        if problems:
            for p in problems:
                st.error(p)
        else:
            try:
                save_email_settings(values)
                st.toast("Email settings saved", icon="✅")
                st.rerun()
            except BackendError as exc:
                notify_error(exc, "Could not save email settings")

st.subheader("Send a test email")
with st.form("test-email"):
    to = st.text_input("Recipient", value=admin["email"])
    subject = st.text_input("Subject", value="Test email")
    body = st.text_area("Message", value="This is a test message from the project board.")
    if st.form_submit_button("Send test email"):
        with st.status("Sending test email…", expanded=True) as status:
            result = send_test_email(to, subject, body, settings=current or None)
            st.write(("✅" if result.validated else "❌") + " Settings validated")
            st.write(("✅" if result.connected else "❌") + " Connected to the SMTP server")
            st.write(("✅" if result.sent else "❌") + " Message accepted")
            if result.ok:
                status.update(label="Test email sent", state="complete")
            else:
                status.update(label="Test email failed", state="error")
                st.error(result.error)

st.subheader("Templates")
templates = {t["key"]: t for t in list_email_templates()}
keys = list(templates) + ["＋ new template"]
choice = st.selectbox("Template", keys)
template = templates.get(choice, {})
with st.form("template"):
    key = st.text_input("Key", value=template.get("key") or "", disabled=bool(template))
    t_subject = st.text_input("Subject", value=template.get("subject") or "")
    t_body = st.text_area("Body", value=template.get("body") or "", height=200)
    if st.form_submit_button("Save template"):
        try:
            save_email_template(template.get("key") or key, t_subject, t_body)
            st.toast("Template saved", icon="✅")
            st.rerun()
        except BackendError as exc:
            notify_error(exc, "Could not save the template")
