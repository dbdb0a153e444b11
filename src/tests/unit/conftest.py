"""
Shared pytest fixtures and path setup for unit tests.
"""

import sys
from pathlib import Path

# Add src to sys.path so plugin_acl.* imports work when running pytest from repo root.
PROJECT_SRC = Path(__file__).resolve().parents[2]
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

import pytest

from plugin_acl.core.config import BUILD_VAR_KEYS, BuildSettings

PYPROJECT = """\
[project]
name = "file-reader"
version = "0.3.1"
description = "Reads files for the host"
dependencies = ["httpx>=0.27"]
"""


@pytest.fixture(autouse=True)
def _isolate_build_env(monkeypatch):
    """Keep the caller's environment from leaking into BuildSettings."""
    for key in BUILD_VAR_KEYS.values():
        monkeypatch.delenv(key, raising=False)
    for key in (
        "PLUGIN_ACL_LOG_LEVEL",
        "PLUGIN_ACL_LOG_FORMAT",
        "PLUGIN_ACL_LICENSE_HEADER",
        "PLUGIN_ACL_METADATA_COMMAND",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    """A plugin source tree with an empty permissions/ dir and a pyproject.toml."""
    root = tmp_path / "file-reader"
    (root / "permissions").mkdir(parents=True)
    (root / "pyproject.toml").write_text(PYPROJECT, encoding="utf-8")
    return root


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


def make_settings(plugin_root: Path, out_dir: Path, **overrides) -> BuildSettings:
    values = {
        "PLUGIN_PKG_NAME": "file-reader",
        "PLUGIN_OUT_DIR": str(out_dir),
        "PLUGIN_MANIFEST_LINKS": "file-reader",
        "PLUGIN_MANIFEST_DIR": str(plugin_root),
    }
    values.update(overrides)
    values = {k: v for k, v in values.items() if v is not None}
    return BuildSettings(_env_file=None, **values)


@pytest.fixture
def settings_factory(plugin_root: Path, out_dir: Path):
    """Build settings for the fixture plugin; pass ``KEY=None`` to unset a variable."""

    def _factory(**overrides) -> BuildSettings:
        return make_settings(plugin_root, out_dir, **overrides)

    return _factory


@pytest.fixture
def build_settings(settings_factory) -> BuildSettings:
    return settings_factory()
