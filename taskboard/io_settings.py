"""Import/export field toggles persisted to disk.

Admins choose which project and task fields appear in exports. Missing or
corrupt files fall back to defaults with every field enabled.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from taskboard.config import DATA_DIR, parse_bool

logger = logging.getLogger(__name__)

DEFAULT_IO_CONFIG_PATH = DATA_DIR / "import_export.json"
SCHEMA_VERSION = 1

PROJECT_FIELDS = (
    "title",
    "description",
    "analyst",
    "estimated_value",
    "actual_value",
    "estimated_end_date",
    "actual_end_date",
    "estimated_hours",
    "actual_hours",
    "position",
)
TASK_FIELDS = (
    "project",
    "title",
    "description",
    "priority",
    "due_date",
    "status",
    "created_at",
)


def _utc_now_iso() -> str:
    return datetime.utcnow().isoformat() + "Z"


@dataclass
class ImportExportConfig:
    schema_version: int = SCHEMA_VERSION
    updated_at: str = field(default_factory=_utc_now_iso)
    project_fields: Dict[str, bool] = field(default_factory=dict)
    task_fields: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "ImportExportConfig":
        return cls(
            project_fields={f: True for f in PROJECT_FIELDS},
            task_fields={f: True for f in TASK_FIELDS},
        )

    def enabled_fields(self, kind: str) -> List[str]:
        if kind == "project":
            known, toggles = PROJECT_FIELDS, self.project_fields
        elif kind == "task":
            known, toggles = TASK_FIELDS, self.task_fields
        else:
            raise ValueError(f"Unknown kind: {kind}")
        return [f for f in known if parse_bool(toggles.get(f, True), True)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": int(self.schema_version),
            "updated_at": str(self.updated_at),
            "project_fields": dict(self.project_fields),
            "task_fields": dict(self.task_fields),
        }

    @classmethod
    def from_json(cls, raw_json: str) -> "ImportExportConfig":
        return _parse(json.loads(raw_json))


def _parse(raw: Any) -> ImportExportConfig:
    cfg = ImportExportConfig.default()
    if not isinstance(raw, dict):
        return cfg

    for attr, known in (("project_fields", PROJECT_FIELDS), ("task_fields", TASK_FIELDS)):
        toggles = getattr(cfg, attr)
        section = raw.get(attr, {})
        if isinstance(section, dict):
            for k, v in section.items():
                if k in known:
                    toggles[k] = parse_bool(v, True)

    updated_at = raw.get("updated_at")
    if isinstance(updated_at, str) and updated_at.strip():
        cfg.updated_at = updated_at.strip()
    return cfg


def load_io_config(*, path: Path = DEFAULT_IO_CONFIG_PATH) -> ImportExportConfig:
    if not path.exists():
        return ImportExportConfig.default()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable import/export config at %s", path)
        return ImportExportConfig.default()
    return _parse(raw)


def save_io_config(cfg: ImportExportConfig, *, path: Path = DEFAULT_IO_CONFIG_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = cfg.to_dict()
    payload["updated_at"] = _utc_now_iso()
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def enabled_fields(kind: str, *, path: Path = DEFAULT_IO_CONFIG_PATH) -> List[str]:
    return load_io_config(path=path).enabled_fields(kind)
