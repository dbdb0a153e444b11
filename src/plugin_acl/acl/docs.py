"""Markdown reference for a plugin's merged permissions."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.exceptions import WriteFileError
from .models import MergedPermissionCollection

logger = logging.getLogger(__name__)

REFERENCE_FILE_NAME = "reference.md"


def _section(heading: str, description: str | None) -> str:
    section = f"## {heading}"
    if description is not None:
        section += f"\n\n{description}"
    return section + "\n\n"


def render_reference(collection: MergedPermissionCollection) -> str:
    """Render sets, the default and permissions in collection order."""
    docs = "# Permissions\n\n"
    for source in collection:
        permission_file = source.file
        for permission_set in permission_file.set:
            docs += _section(permission_set.identifier, permission_set.description)
        if permission_file.default is not None:
            docs += _section("default", permission_file.default.description)
        for permission in permission_file.permission:
            docs += _section(permission.identifier, permission.description)
    return docs


def generate_docs(collection: MergedPermissionCollection, out_dir: Path) -> Path:
    """Overwrite ``<out_dir>/reference.md`` with the rendered reference."""
    target = out_dir / REFERENCE_FILE_NAME
    try:
        target.write_text(render_reference(collection), encoding="utf-8")
    except OSError as exc:
        raise WriteFileError(target, str(exc)) from exc
    logger.info("Permission reference written", extra={"path": str(target)})
    return target
