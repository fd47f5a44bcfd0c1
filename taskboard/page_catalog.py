"""Page catalog for the project board.

Single source of truth for navigation: which pages exist, how they are
grouped in the sidebar and which role each one needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class PageSpec:
    """Specification for a navigation page."""

    path: str
    title: str
    icon: str
    group: str
    description: str = ""
    required_role: Optional[str] = None


GROUP_ORDER = ["Board", "Reports", "Admin"]

GROUP_ICONS = {
    "Board": "📋",
    "Reports": "📈",
    "Admin": "⚙️",
}


def get_page_catalog() -> List[PageSpec]:
    return [
        PageSpec(
            path="pages/1_Board.py",
            title="Board",
            icon="📋",
            group="Board",
            description="Projects and tasks",
        ),
        PageSpec(
            path="pages/2_Archived_Projects.py",
            title="Archived Projects",
            icon="🗃️",
            group="Board",
            description="Restore or delete archived projects",
        ),
        PageSpec(
            path="pages/3_Archived_Tasks.py",
            title="Archived Tasks",
            icon="🗂️",
            group="Board",
            description="Restore or delete archived tasks",
        ),
        PageSpec(
            path="pages/4_Reports.py",
            title="Reports",
            icon="📈",
            group="Reports",
            description="Charts and weekly comparison",
        ),
        PageSpec(
            path="pages/5_User_Profiles.py",
            title="User Profiles",
            icon="👥",
            group="Admin",
            description="Edit and remove users",
            required_role="admin",
        ),
        PageSpec(
            path="pages/6_Roles.py",
            title="Roles",
            icon="🛡️",
            group="Admin",
            description="Roles and assignments",
            required_role="admin",
        ),
        PageSpec(
            path="pages/7_System_Settings.py",
            title="System Settings",
            icon="🎨",
            group="Admin",
            description="Branding and layout",
            required_role="admin",
        ),
        PageSpec(
            path="pages/8_Email_Settings.py",
            title="Email Settings",
            icon="✉️",
            group="Admin",
            description="SMTP server and test email",
            required_role="admin",
        ),
        PageSpec(
            path="pages/9_Import_Export.py",
            title="Import / Export",
            icon="🔁",
            group="Admin",
            description="CSV import, export and field toggles",
            required_role="admin",
        ),
    ]


def visible_pages(roles: Iterable[str]) -> List[PageSpec]:
    """Pages the given roles may open; admins see everything."""
    held = set(roles)
    return [p for p in get_page_catalog() if p.required_role is None or p.required_role in held or "admin" in held]


def catalog_by_group(pages: Optional[List[PageSpec]] = None) -> Dict[str, List[PageSpec]]:
    """Pages organized by group, in GROUP_ORDER."""
    grouped: Dict[str, List[PageSpec]] = {}
    for p in pages if pages is not None else get_page_catalog():
        grouped.setdefault(p.group, []).append(p)
    ordered = {g: grouped[g] for g in GROUP_ORDER if g in grouped}
    for group, items in grouped.items():
        ordered.setdefault(group, items)
    return ordered


def find_page(path: str) -> Optional[PageSpec]:
    for p in get_page_catalog():
        if p.path == path:
            return p
    return None
