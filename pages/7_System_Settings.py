import streamlit as st

from taskboard.errors import BackendError
from taskboard.models import LAYOUT_TYPES
from taskboard.settings_repo import FORM_POSITIONS, update_system_settings
from taskboard.theme import build_theme_css
from taskboard.ui import get_cache, notify_error, page_setup, system_settings

page_setup("System Settings", icon="🎨", role="admin")
cache = get_cache()
current = system_settings()

STYLE_CHOICES = ("default", "minimal", "bold")
FORM_LAYOUTS = ("default", "compact", "wide")


def _index(options, value):
    return options.index(value) if value in options else 0


st.title("System settings")

with st.form("system-settings"):
    st.subheader("Branding")
    site_name = st.text_input("Site name", value=current.get("site_name") or "")
    site_description = st.text_area("Site description", value=current.get("site_description") or "")
    c1, c2 = st.columns(2)
    with c1:
        primary_color = st.color_picker("Primary color", value=current.get("primary_color") or "#0EA5E9")
        logo_url = st.text_input("Logo URL", value=current.get("logo_url") or "")
    with c2:
        font_color = st.color_picker("Font color", value=current.get("system_font_color") or "#000000")
        favicon_url = st.text_input("Favicon URL", value=current.get("favicon_url") or "")
    footer_text = st.text_input("Footer text", value=current.get("footer_text") or "")

    st.subheader("Layout")
    l1, l2, l3 = st.columns(3)
    with l1:
        layout_type = st.selectbox("Layout", LAYOUT_TYPES, index=_index(LAYOUT_TYPES, current.get("layout_type")))
        form_layout = st.selectbox("Form layout", FORM_LAYOUTS, index=_index(FORM_LAYOUTS, current.get("form_layout")))
    with l2:
        header_style = st.selectbox("Header style", STYLE_CHOICES, index=_index(STYLE_CHOICES, current.get("header_style")))
        form_position = st.selectbox("Form position", FORM_POSITIONS, index=_index(FORM_POSITIONS, current.get("form_position")))
    with l3:
        footer_style = st.selectbox("Footer style", STYLE_CHOICES, index=_index(STYLE_CHOICES, current.get("footer_style")))

    if st.form_submit_button("Save settings", type="primary"):
        values = {
            "site_name": site_name,
            "site_description": site_description,
            "primary_color": primary_color,
            "system_font_color": font_color,
            "logo_url": logo_url,
            "favicon_url": favicon_url,
            "footer_text": footer_text,
            "layout_type": layout_type,
            "header_style": header_style,
            "footer_style": footer_style,
            "form_layout": form_layout,
            "form_position": form_position,
        }
        try:
            update_system_settings(values)
            cache.invalidate(("system_settings",))
            st.toast("Settings saved", icon="✅")
            st.rerun()
        except BackendError as exc:
            notify_error(exc, "Could not save settings")

with st.expander("Generated CSS variables"):
    st.code(build_theme_css(current), language="css")
