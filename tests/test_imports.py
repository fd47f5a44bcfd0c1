import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

MODULES = [
    "taskboard.auth",
    "taskboard.users_repo",
    "taskboard.mailer",
    "taskboard.projects_repo",
    "taskboard.tasks_repo",
    "taskboard.settings_repo",
    "taskboard.ui",
]


@pytest.mark.parametrize("module", MODULES)
def test_module_imports_first_in_fresh_interpreter(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
