"""
Unit tests for permission discovery, validation and merging.

Tests cover:
- Sorted discovery across hand-authored and autogenerated files
- Skipping of schemas/ and non-permission files
- Duplicate identifier, duplicate default and dangling reference failures
- Compiled manifest output
"""

from pathlib import Path

import pytest

from plugin_acl.acl.autogenerate import autogenerate_command_permissions
from plugin_acl.acl.loader import DEFAULT_PERMISSIONS_GLOB, PermissionLoader, define_permissions
from plugin_acl.acl.manifest import compiled_permissions_path
from plugin_acl.core.exceptions import ParseError, ValidationError


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _set_file(identifier: str, *permissions: str, description: str = "A set.") -> str:
    refs = ", ".join(f'"{p}"' for p in permissions)
    return f'[[set]]\nidentifier = "{identifier}"\ndescription = "{description}"\npermissions = [{refs}]\n'


def _permission_file(*identifiers: str) -> str:
    return "".join(f'[[permission]]\nidentifier = "{i}"\ncommands.allow = ["{i}"]\n\n' for i in identifiers)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def test_discovery_is_sorted_and_filtered(plugin_root: Path) -> None:
    _write(plugin_root, "permissions/zeta.toml", _permission_file("zeta"))
    _write(plugin_root, "permissions/alpha.json", '{"permission": [{"identifier": "alpha"}]}')
    _write(plugin_root, "permissions/autogenerated/commands/ping.toml", _permission_file("allow-ping"))
    _write(plugin_root, "permissions/autogenerated/reference.md", "# Permissions\n")
    _write(plugin_root, "permissions/schemas/schema.json", '{"type": "object"}')
    _write(plugin_root, "permissions/README", "no extension")

    loader = PermissionLoader(root=plugin_root)
    found = [p.relative_to(plugin_root).as_posix() for p in loader.discover()]

    assert found == [
        "permissions/alpha.json",
        "permissions/autogenerated/commands/ping.toml",
        "permissions/zeta.toml",
    ]


def test_empty_permissions_dir_is_not_an_error(plugin_root: Path, out_dir: Path) -> None:
    collection = define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)

    assert len(collection) == 0
    assert compiled_permissions_path("file-reader", out_dir).exists()


def test_missing_root_yields_no_files(tmp_path: Path) -> None:
    assert PermissionLoader(root=tmp_path / "nowhere").discover() == []


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def test_merge_preserves_file_then_declaration_order(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/b.toml", _permission_file("beta-two", "beta-one"))
    _write(plugin_root, "permissions/a.toml", _permission_file("alpha-two", "alpha-one"))

    collection = define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)

    assert [s.path for s in collection] == ["permissions/a.toml", "permissions/b.toml"]
    assert collection.permission_identifiers() == ["alpha-two", "alpha-one", "beta-two", "beta-one"]


def test_autogenerated_and_hand_authored_files_merge(plugin_root: Path, out_dir: Path) -> None:
    autogenerate_command_permissions(plugin_root / "permissions/autogenerated/commands", ["read_file"])
    _write(plugin_root, "permissions/admin.toml", _set_file("admin", "allow-read-file"))

    collection = define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)

    assert collection.set_identifiers() == ["admin"]
    assert collection.permission_identifiers() == ["allow-read-file", "deny-read-file"]


def test_duplicate_set_identifier_names_both_sources(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _permission_file("allow-x") + _set_file("admin", "allow-x"))
    _write(plugin_root, "permissions/b.toml", _set_file("admin", "allow-x"))

    with pytest.raises(ValidationError, match="admin") as exc_info:
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)

    message = str(exc_info.value)
    assert "permissions/a.toml" in message
    assert "permissions/b.toml" in message
    assert not compiled_permissions_path("file-reader", out_dir).exists()


def test_duplicate_permission_identifier_within_one_file(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _permission_file("allow-x", "allow-x"))

    with pytest.raises(ValidationError, match="duplicate permission identifier 'allow-x'"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_set_and_permission_may_share_identifier(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _permission_file("read") + _set_file("read-all", "read"))
    _write(plugin_root, "permissions/b.toml", _set_file("read", "read-all"))

    collection = define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)

    assert collection.set_identifiers() == ["read-all", "read"]
    assert collection.permission_identifiers() == ["read"]


def test_two_defaults_rejected(plugin_root: Path, out_dir: Path) -> None:
    default = '[default]\ndescription = "d"\npermissions = []\n'
    _write(plugin_root, "permissions/a.toml", default)
    _write(plugin_root, "permissions/b.toml", default)

    with pytest.raises(ValidationError, match="default permission declared in both"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_unknown_reference_rejected(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _set_file("admin", "allow-missing"))

    with pytest.raises(ValidationError, match="unknown permission 'allow-missing'"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_default_unknown_reference_rejected(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", '[default]\npermissions = ["allow-missing"]\n')

    with pytest.raises(ValidationError, match="default permission .* unknown permission 'allow-missing'"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_self_referencing_set_rejected(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _set_file("admin", "admin"))

    with pytest.raises(ValidationError, match="references itself"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_invalid_identifier_rejected(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _permission_file("Allow_X"))

    with pytest.raises(ValidationError, match="Allow_X"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_blank_set_description_rejected(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/a.toml", _permission_file("allow-x") + _set_file("admin", "allow-x", description=" "))

    with pytest.raises(ValidationError, match="empty description"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)


def test_malformed_file_raises_parse_error(plugin_root: Path, out_dir: Path) -> None:
    _write(plugin_root, "permissions/broken.toml", "[[set]\n")

    with pytest.raises(ParseError, match="permissions/broken.toml"):
        define_permissions(DEFAULT_PERMISSIONS_GLOB, "file-reader", out_dir, root=plugin_root)
