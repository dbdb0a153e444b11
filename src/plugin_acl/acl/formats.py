"""Serialization formats accepted for permission declaration files.

The format is selected once, by file extension, when a file is discovered.
Everything downstream only sees validated ``PermissionFile`` models.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import pydantic
import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..core.exceptions import ParseError
from .models import PermissionFile


@runtime_checkable
class PermissionFormat(Protocol):
    extensions: tuple[str, ...]

    def parse(self, data: bytes) -> dict[str, Any]:
        """Decode raw file content into a plain mapping."""
        ...


class TomlFormat:
    extensions = ("toml",)

    def parse(self, data: bytes) -> dict[str, Any]:
        return tomlkit.parse(data.decode("utf-8")).unwrap()


class JsonFormat:
    extensions = ("json",)

    def parse(self, data: bytes) -> dict[str, Any]:
        return json.loads(data.decode("utf-8"))


FORMATS: tuple[PermissionFormat, ...] = (TomlFormat(), JsonFormat())

PERMISSION_FILE_EXTENSIONS: frozenset[str] = frozenset(ext for fmt in FORMATS for ext in fmt.extensions)


def format_for_path(path: Path) -> PermissionFormat | None:
    """Return the format handling *path*'s extension, or None if unsupported."""
    ext = path.suffix.lstrip(".").lower()
    for fmt in FORMATS:
        if ext in fmt.extensions:
            return fmt
    return None


def _describe_validation_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def parse_permission_file(path: str | Path, data: bytes, fmt: PermissionFormat | None = None) -> PermissionFile:
    """Parse and structurally validate one declaration file.

    Raises:
        ParseError: on unsupported extensions, syntax errors, a non-table top
            level, or content that does not match the permission file model.
    """
    fmt = fmt or format_for_path(Path(path))
    if fmt is None:
        raise ParseError(path, f"unsupported file extension; expected one of {sorted(PERMISSION_FILE_EXTENSIONS)}")
    try:
        raw = fmt.parse(data)
    except (TOMLKitError, ValueError) as exc:
        raise ParseError(path, str(exc)) from exc
    if not isinstance(raw, dict):
        raise ParseError(path, f"top level must be a table/object, got {type(raw).__name__}")
    try:
        return PermissionFile.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ParseError(path, _describe_validation_error(exc)) from exc
