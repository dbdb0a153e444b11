"""Unit tests for the compiled permission manifest."""

import json
from pathlib import Path

import pytest

from plugin_acl.acl.autogenerate import autogenerate_command_permissions
from plugin_acl.acl.loader import DEFAULT_PERMISSIONS_GLOB, define_permissions
from plugin_acl.acl.manifest import (
    COMPILED_FORMAT_VERSION,
    compiled_permissions_path,
    read_compiled_permissions,
)
from plugin_acl.core.exceptions import ParseError

ADMIN_SET = """
[default]
description = "Read access only."
permissions = ["allow-read-file"]

[[set]]
identifier = "admin"
description = "Full file access."
permissions = ["allow-read-file", "allow-write-file"]
"""


@pytest.fixture
def compiled(plugin_root: Path, out_dir: Path) -> Path:
    autogenerate_command_permissions(
        plugin_root / "permissions" / "autogenerated" / "commands", ["read_file", "write_file"]
    )
    (plugin_root / "permissions" / "admin.toml").write_text(ADMIN_SET, encoding="utf-8")
    define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)
    return compiled_permissions_path("file-reader", out_dir)


def test_compiled_manifest_layout(compiled: Path) -> None:
    raw = json.loads(compiled.read_text(encoding="utf-8"))

    assert compiled.name == "file-reader-permissions.json"
    assert raw["format_version"] == COMPILED_FORMAT_VERSION
    assert raw["plugin"] == "file-reader"
    assert [f["path"] for f in raw["files"]] == [
        "permissions/admin.toml",
        "permissions/autogenerated/commands/read_file.toml",
        "permissions/autogenerated/commands/write_file.toml",
    ]


def test_read_back_reproduces_identifiers_and_descriptions(compiled: Path) -> None:
    plugin, collection = read_compiled_permissions(compiled)

    assert plugin == "file-reader"
    assert collection.set_identifiers() == ["admin"]
    assert collection.permission_identifiers() == [
        "allow-read-file",
        "deny-read-file",
        "allow-write-file",
        "deny-write-file",
    ]
    assert collection.default is not None
    assert collection.default.description == "Read access only."
    descriptions = [p.description for f in collection.files for p in f.permission]
    assert descriptions[0] == "Enables the read_file command without any pre-configured scope."


def test_unknown_format_version_rejected(compiled: Path) -> None:
    raw = json.loads(compiled.read_text(encoding="utf-8"))
    raw["format_version"] = COMPILED_FORMAT_VERSION + 1
    compiled.write_text(json.dumps(raw), encoding="utf-8")

    with pytest.raises(ParseError, match="format_version"):
        read_compiled_permissions(compiled)


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[]",
        json.dumps({"format_version": COMPILED_FORMAT_VERSION, "plugin": "x"}),
        json.dumps({"format_version": COMPILED_FORMAT_VERSION, "plugin": "x", "files": [{"path": "a"}]}),
    ],
)
def test_malformed_manifest_rejected(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "x-permissions.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ParseError):
        read_compiled_permissions(path)
