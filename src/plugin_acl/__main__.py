"""Command-line entry point: ``plugin-acl`` / ``python -m plugin_acl``.

Reads the build environment once, then runs the permission compiler for the
commands given on the command line.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import pydantic

from plugin_acl.builder import TOOL_NAME, Builder
from plugin_acl.core.config import get_settings
from plugin_acl.core.exceptions import AclBuildError, ParseError
from plugin_acl.core.logging import setup_logging


def read_commands_file(path: Path) -> list[str]:
    """One command per line; blank lines and ``#`` comments are ignored."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(path, str(exc), subject="commands file") from exc
    commands = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            commands.append(line)
    return commands


def read_schema_file(path: Path) -> dict[str, Any]:
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ParseError(path, str(exc), subject="global scope schema file") from exc
    if not isinstance(schema, dict):
        raise ParseError(path, "global scope schema must be a JSON object", subject="global scope schema file")
    return schema


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=TOOL_NAME,
        description="Compile a plugin's permission declarations into a manifest, JSON schemas and docs",
    )
    parser.add_argument(
        "--command",
        "-c",
        dest="commands",
        action="append",
        default=[],
        metavar="NAME",
        help="Command to autogenerate allow/deny permissions for (repeatable)",
    )
    parser.add_argument("--commands-file", type=Path, help="File listing one command per line")
    parser.add_argument("--global-scope-schema", type=Path, help="JSON Schema file for the plugin's global scope")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except pydantic.ValidationError as exc:
        problems = "; ".join(err["msg"] for err in exc.errors())
        print(f"{TOOL_NAME}: invalid build settings: {problems}")
        sys.exit(1)
    setup_logging(settings)

    try:
        commands = read_commands_file(args.commands_file) if args.commands_file else []
        commands.extend(args.commands)
        builder = Builder(commands, settings=settings)
        if args.global_scope_schema:
            builder.global_scope_schema(read_schema_file(args.global_scope_schema))
    except AclBuildError as error:
        print(f"{settings.pkg_name or TOOL_NAME}: {error}")
        sys.exit(1)

    builder.build()
    return 0


if __name__ == "__main__":
    sys.exit(main())
