"""Autogenerate one permission declaration per known plugin command.

Files under the generated commands directory are derived output: they are
rewritten on every build and must not be edited by hand.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

import tomlkit

from ..core.exceptions import ValidationError, WriteFileError
from .identifier import slugify_command

logger = logging.getLogger(__name__)

AUTOGENERATED_MARKER = "Automatically generated - DO NOT EDIT!"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def command_file_name(command: str) -> str:
    """Filesystem-safe file name for a command's declaration."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', command)}.toml"


def _file_names(commands: Sequence[str]) -> dict[str, str]:
    """Map each distinct command to its file name, rejecting unusable or clashing names."""
    names: dict[str, str] = {}
    owners: dict[str, str] = {}
    for command in commands:
        if command in names:
            continue
        if not command.strip():
            raise ValidationError(
                f"command name {command!r} is empty",
                details={"command": command},
            )
        file_name = command_file_name(command)
        previous = owners.get(file_name)
        if previous is not None:
            raise ValidationError(
                f"commands '{previous}' and '{command}' would both be written to '{file_name}'",
                details={"commands": [previous, command], "file_name": file_name},
            )
        owners[file_name] = command
        names[command] = file_name
    return names


def _permission_table(identifier: str, description: str, *, allow: list[str] | None = None, deny: list[str] | None = None):
    table = tomlkit.table()
    table["identifier"] = identifier
    table["description"] = description
    commands = tomlkit.inline_table()
    if allow is not None:
        commands["allow"] = allow
    if deny is not None:
        commands["deny"] = deny
    table["commands"] = commands
    return table


def render_command_permissions(command: str, license_header: str = "") -> str:
    """Render the TOML declaration for a single command."""
    slug = slugify_command(command)
    doc = tomlkit.document()
    doc.add(tomlkit.comment(AUTOGENERATED_MARKER))
    doc.add(tomlkit.nl())

    permissions = tomlkit.aot()
    permissions.append(
        _permission_table(
            f"allow-{slug}",
            f"Enables the {command} command without any pre-configured scope.",
            allow=[command],
        )
    )
    permissions.append(
        _permission_table(
            f"deny-{slug}",
            f"Denies the {command} command without any pre-configured scope.",
            deny=[command],
        )
    )
    doc.add("permission", permissions)

    body = tomlkit.dumps(doc)
    if license_header:
        header = license_header if license_header.endswith("\n") else license_header + "\n"
        body = header + body
    return body


def autogenerate_command_permissions(
    commands_dir: Path,
    commands: Sequence[str],
    license_header: str = "",
) -> list[Path]:
    """Write ``<commands_dir>/<command>.toml`` for every command.

    An empty command list is a no-op: the directory is neither created nor
    scanned. Existing files are overwritten in full.

    Raises:
        ValidationError: if a command is empty or two commands map to the
            same file name; nothing is written in that case.
        WriteFileError: if the directory or a file cannot be written.
    """
    if not commands:
        return []
    file_names = _file_names(commands)

    try:
        commands_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteFileError(commands_dir, str(exc)) from exc

    written: list[Path] = []
    for command, file_name in file_names.items():
        target = commands_dir / file_name
        try:
            target.write_text(render_command_permissions(command, license_header), encoding="utf-8")
        except OSError as exc:
            raise WriteFileError(target, str(exc)) from exc
        written.append(target)

    logger.info(
        "Autogenerated command permissions",
        extra={"commands_dir": str(commands_dir), "files": len(written)},
    )
    return written
