"""Naming rules for plugin names and permission identifiers."""

from __future__ import annotations

import re

from ..core.exceptions import CrateNameError, ValidationError

# Identifiers are later prefixed by the host with "<plugin>:", so they stay short.
MAX_IDENTIFIER_LENGTH = 116

_IDENTIFIER_CHARS = re.compile(r"[a-z0-9-]+")


def validate_plugin_name(name: str) -> str:
    """Reject plugin names containing an underscore; return valid names unchanged."""
    if "_" in name:
        raise CrateNameError(name)
    return name


def identifier_problem(identifier: str) -> str | None:
    """Return why *identifier* is malformed, or None when it is valid."""
    if not identifier:
        return "identifier is empty"
    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        return f"identifier is longer than {MAX_IDENTIFIER_LENGTH} characters"
    if ":" in identifier:
        return "identifier must not contain ':' (plugin prefixes are added by the host)"
    if not _IDENTIFIER_CHARS.fullmatch(identifier):
        return "identifier may only contain lowercase ASCII letters, digits and '-'"
    if not identifier[0].isalpha():
        return "identifier must start with a lowercase letter"
    if identifier.endswith("-"):
        return "identifier must not end with '-'"
    return None


def validate_identifier(identifier: str, *, source: str, kind: str = "permission") -> str:
    """Raise ``ValidationError`` if *identifier* is malformed."""
    problem = identifier_problem(identifier)
    if problem is not None:
        raise ValidationError(
            f"invalid {kind} identifier '{identifier}' in '{source}': {problem}",
            details={"identifier": identifier, "source": source, "kind": kind, "reason": problem},
        )
    return identifier


def slugify_command(command: str) -> str:
    """Identifier stem for a command name, e.g. ``read_file`` -> ``read-file``."""
    return command.replace("_", "-").lower()
