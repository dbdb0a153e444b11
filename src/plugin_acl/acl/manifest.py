"""Compiled permission manifest written to the build output directory.

The runtime component of a plugin reads this file instead of re-parsing the
declaration sources. ``COMPILED_FORMAT_VERSION`` is bumped on any change to
the layout so that reader and compiler never drift silently.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pydantic

from ..core.exceptions import ParseError, WriteFileError
from .models import MergedPermissionCollection, PermissionFile, PermissionSource

logger = logging.getLogger(__name__)

COMPILED_FORMAT_VERSION = 1


def compiled_permissions_path(plugin_name: str, out_dir: Path) -> Path:
    return out_dir / f"{plugin_name}-permissions.json"


def serialize_collection(collection: MergedPermissionCollection, plugin_name: str) -> dict[str, Any]:
    return {
        "format_version": COMPILED_FORMAT_VERSION,
        "plugin": plugin_name,
        "files": [
            {
                "path": source.path,
                "permission_file": source.file.model_dump(mode="json", by_alias=True, exclude_none=True),
            }
            for source in collection
        ],
    }


def write_compiled_permissions(collection: MergedPermissionCollection, plugin_name: str, out_dir: Path) -> Path:
    """Write the merged collection as ``<out_dir>/<plugin>-permissions.json``."""
    target = compiled_permissions_path(plugin_name, out_dir)
    payload = json.dumps(serialize_collection(collection, plugin_name), indent=2, ensure_ascii=False) + "\n"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise WriteFileError(target, str(exc)) from exc
    logger.debug("Wrote compiled permissions to %s", target)
    return target


def read_compiled_permissions(path: Path) -> tuple[str, MergedPermissionCollection]:
    """Read a compiled manifest back into ``(plugin_name, collection)``.

    Raises:
        ParseError: if the file is unreadable, malformed, or was written with
            a different ``format_version``.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ParseError(path, str(exc)) from exc
    if not isinstance(raw, dict):
        raise ParseError(path, "compiled manifest must be a JSON object")

    version = raw.get("format_version")
    if version != COMPILED_FORMAT_VERSION:
        raise ParseError(
            path,
            f"unsupported compiled manifest format_version {version!r}; expected {COMPILED_FORMAT_VERSION}",
        )

    plugin_name = raw.get("plugin")
    files = raw.get("files")
    if not isinstance(plugin_name, str) or not isinstance(files, list):
        raise ParseError(path, "compiled manifest requires 'plugin' (string) and 'files' (list)")

    sources: list[PermissionSource] = []
    for entry in files:
        try:
            sources.append(
                PermissionSource(
                    path=str(entry["path"]),
                    file=PermissionFile.model_validate(entry["permission_file"]),
                )
            )
        except (KeyError, TypeError, pydantic.ValidationError) as exc:
            raise ParseError(path, f"invalid file entry: {exc}") from exc
    return plugin_name, MergedPermissionCollection(sources)
