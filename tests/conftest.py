"""
cmdmatch Test Configuration
---------------------------
Shared fixtures and configuration for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cmdmatch.commands.registry import CommandRegistry  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """
    Strip CMDMATCH_* variables so a developer's shell can't leak
    overrides into config tests.
    """
    import os

    for key in list(os.environ):
        if key.startswith("CMDMATCH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root path."""
    return PROJECT_ROOT


@pytest.fixture
def registry():
    """Registry using the conventional chat-bot prefix."""
    return CommandRegistry(prefix="!")


@pytest.fixture
def write_yaml(tmp_path):
    """Write YAML text to a temp file and return its path."""
    def _write(text: str, name: str = "data.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
