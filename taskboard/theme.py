import os
from typing import Any, Dict, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

PRIMARY_SHADES = (
    ("50", "10"),
    ("100", "20"),
    ("200", "30"),
    ("300", "40"),
    ("400", "50"),
    ("500", ""),
    ("600", "70"),
    ("700", "80"),
    ("800", "90"),
    ("900", "95"),
    ("950", "99"),
)

DEFAULT_PRIMARY = "#0EA5E9"
DEFAULT_FONT_COLOR = "#000000"

LAYOUT_SPACING = {
    "default": "1rem",
    "compact": "0.5rem",
    "comfortable": "1.75rem",
}


def primary_palette(primary_color: Optional[str]) -> Dict[str, str]:
    """CSS variables ``--primary-50`` .. ``--primary-950``.

    Each shade is the base color with a two-digit alpha suffix; 500 is the
    base color itself.
    """
    base = primary_color or DEFAULT_PRIMARY
    return {f"--primary-{shade}": f"{base}{suffix}" for shade, suffix in PRIMARY_SHADES}


def build_theme_css(settings: Optional[Dict[str, Any]] = None) -> str:
    settings = settings or {}
    variables = primary_palette(settings.get("primary_color"))
    variables["--system-font-color"] = settings.get("system_font_color") or DEFAULT_FONT_COLOR
    variables["--form-position"] = settings.get("form_position") or "center"
    variables["--layout-gap"] = LAYOUT_SPACING.get(settings.get("layout_type") or "default", LAYOUT_SPACING["default"])
    body = "\n".join(f"  {k}: {v};" for k, v in variables.items())
    return f":root {{\n{body}\n}}\n"


def set_theme(
    page_title: Optional[str] = None,
    page_icon: str = "📋",
    layout: str = "wide",
    initial_sidebar_state: str = "expanded",
    settings: Optional[Dict[str, Any]] = None,
):
    """Configure Streamlit page & inject global CSS.

    ``settings`` is the system settings row; its site name is the default
    page title and its colors drive the CSS variables. Safe to call once at
    top of each page.
    """
    settings = settings or {}
    title = page_title or settings.get("site_name") or "Project Board"
    icon = settings.get("favicon_url") or page_icon
    try:
        st.set_page_config(
            page_title=title,
            page_icon=icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except StreamlitAPIException:
        # set_page_config can only be called once; ignore if already set.
        pass

    theme_file = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'assets', 'custom_theme.css')

    css = build_theme_css(settings)
    try:
        with open(theme_file, 'r', encoding='utf-8') as f:
            css += f.read()
    except FileNotFoundError:
        st.error(f"Theme file not found at {theme_file}. Please check the file path.")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)
