"""Input checks shared by the auth, profile, label and settings code."""

from __future__ import annotations

import re
from typing import Optional

EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.match(email.strip()) is not None


def is_hex_color(value: Optional[str]) -> bool:
    return bool(value) and HEX_COLOR_RE.match(value) is not None
