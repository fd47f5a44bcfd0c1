"""System branding and email settings.

Both tables hold a single row; the first row is read and updated in
place, and created on demand when the seed row is missing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from taskboard.db import session_scope
from taskboard.errors import ValidationError
from taskboard.validators import is_hex_color
from taskboard.models import LAYOUT_TYPES, EmailSettings, EmailTemplate, SystemSettings

logger = logging.getLogger(__name__)

_SYSTEM_FIELDS = (
    "site_name",
    "site_description",
    "primary_color",
    "system_font_color",
    "logo_url",
    "favicon_url",
    "footer_text",
    "layout_type",
    "header_style",
    "footer_style",
    "form_layout",
    "form_position",
)
_EMAIL_FIELDS = (
    "smtp_host",
    "smtp_port",
    "smtp_ssl",
    "smtp_username",
    "smtp_password",
    "sender_email",
    "sender_name",
)
FORM_POSITIONS = ("left", "center", "right")


def _first(s, model):
    row = s.execute(select(model).order_by(model.id).limit(1)).scalars().first()
    if row is None:
        row = model()
        s.add(row)
        s.flush()
    return row


def get_system_settings() -> Dict[str, Any]:
    with session_scope("loading system settings") as s:
        row = _first(s, SystemSettings)
        s.commit()
        return row.to_dict()


def update_system_settings(values: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("primary_color", "system_font_color"):
        if key in values and not is_hex_color(values[key]):
            raise ValidationError(f"Invalid color for {key}: {values[key]}")
    if "layout_type" in values and values["layout_type"] not in LAYOUT_TYPES:
        raise ValidationError(f"Unknown layout: {values['layout_type']}")
    if "form_position" in values and values["form_position"] not in FORM_POSITIONS:
        raise ValidationError(f"Unknown form position: {values['form_position']}")
    if "site_name" in values and not (values["site_name"] or "").strip():
        raise ValidationError("Site name is required")

    with session_scope("saving system settings") as s:
        row = _first(s, SystemSettings)
        for key in _SYSTEM_FIELDS:
            if key in values:
                value = values[key]
                if isinstance(value, str):
                    value = value.strip()
                    if key not in ("site_name", "primary_color", "system_font_color"):
                        value = value or None
                setattr(row, key, value)
        s.commit()
        logger.info("System settings updated")
        return row.to_dict()


def get_email_settings() -> Optional[Dict[str, Any]]:
    with session_scope("loading email settings") as s:
        row = s.execute(select(EmailSettings).order_by(EmailSettings.id).limit(1)).scalars().first()
        return row.to_dict() if row else None


def save_email_settings(values: Dict[str, Any]) -> Dict[str, Any]:
    if "smtp_port" in values:
        try:
            port = int(values["smtp_port"])
        except (TypeError, ValueError):
            raise ValidationError("SMTP port must be a number") from None
        if not 0 < port < 65536:
            raise ValidationError("SMTP port out of range")
        values = {**values, "smtp_port": port}

    with session_scope("saving email settings") as s:
        row = _first(s, EmailSettings)
        for key in _EMAIL_FIELDS:
            if key in values:
                value = values[key]
                if key == "smtp_ssl":
                    value = bool(value)
                elif isinstance(value, str) and key != "smtp_password":
                    value = value.strip()
                setattr(row, key, value)
        s.commit()
        logger.info("Email settings updated (host=%s)", row.smtp_host)
        return row.to_dict()


def list_email_templates() -> List[Dict[str, Any]]:
    with session_scope("listing email templates") as s:
        return [t.to_dict() for t in s.execute(select(EmailTemplate).order_by(EmailTemplate.key)).scalars().all()]


def save_email_template(key: str, subject: str, body: str) -> Dict[str, Any]:
    key = (key or "").strip()
    if not key:
        raise ValidationError("Template key is required")
    with session_scope("saving email template") as s:
        row = s.execute(select(EmailTemplate).where(EmailTemplate.key == key)).scalars().first()
        if row is None:
            row = EmailTemplate(key=key)
            s.add(row)
        row.subject = subject or ""
        row.body = body or ""
        s.commit()
        return row.to_dict()
