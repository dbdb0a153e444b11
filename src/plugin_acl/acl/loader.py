"""
Permission loader: discovers permission declaration files under permissions/,
parses them, validates identifiers and references, and merges them into one
ordered collection.

- Hand-authored files and the autogenerated commands directory are matched by
  the same glob (``permissions/**/*.*``).
- Files are processed in sorted POSIX path order so the merged collection and
  every derived artifact are reproducible across platforms.
- Files inside a ``schemas`` directory and files with unsupported extensions
  (e.g. the generated ``reference.md``) are skipped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..core.exceptions import ParseError, ValidationError
from .formats import format_for_path, parse_permission_file
from .identifier import validate_identifier
from .manifest import write_compiled_permissions
from .models import MergedPermissionCollection, PermissionFile, PermissionSource

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS_GLOB = "permissions/**/*.*"
SCHEMAS_DIR_NAME = "schemas"


@dataclass
class _MergeState:
    sets: dict[str, str] = field(default_factory=dict)  # identifier -> source path
    permissions: dict[str, str] = field(default_factory=dict)
    default_source: str | None = None


class PermissionLoader:
    def __init__(self, *, root: Path, pattern: str = DEFAULT_PERMISSIONS_GLOB):
        self.root = root
        self.pattern = pattern

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def discover(self) -> list[Path]:
        """Return candidate declaration files, sorted by relative path."""
        if not self.root.exists():
            return []
        found: list[Path] = []
        for path in self.root.glob(self.pattern):
            if not path.is_file():
                continue
            if SCHEMAS_DIR_NAME in path.relative_to(self.root).parts[:-1]:
                continue
            if format_for_path(path) is None:
                logger.debug("Skipping non-permission file %s", path)
                continue
            found.append(path)
        return sorted(found, key=self._relative)

    def parse(self, path: Path) -> PermissionSource:
        rel = self._relative(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ParseError(rel, str(exc)) from exc
        permission_file = parse_permission_file(rel, data)
        _validate_file(permission_file, rel)
        logger.debug(
            "Parsed permission file %s (%d sets, %d permissions)",
            rel,
            len(permission_file.set),
            len(permission_file.permission),
        )
        return PermissionSource(path=rel, file=permission_file)

    def load(self) -> MergedPermissionCollection:
        """Discover, parse, validate and merge every declaration file."""
        state = _MergeState()
        sources: list[PermissionSource] = []
        for path in self.discover():
            source = self.parse(path)
            _merge(state, source)
            sources.append(source)
        collection = MergedPermissionCollection(sources)
        _validate_references(collection)
        return collection


def _validate_file(permission_file: PermissionFile, source: str) -> None:
    """Per-file checks that need no knowledge of other files."""
    for permission_set in permission_file.set:
        validate_identifier(permission_set.identifier, source=source, kind="set")
        if not permission_set.description.strip():
            raise ValidationError(
                f"permission set '{permission_set.identifier}' in '{source}' has an empty description",
                details={"identifier": permission_set.identifier, "source": source},
            )
    for permission in permission_file.permission:
        validate_identifier(permission.identifier, source=source, kind="permission")


def _merge(state: _MergeState, source: PermissionSource) -> None:
    for permission_set in source.file.set:
        previous = state.sets.get(permission_set.identifier)
        if previous is not None:
            raise ValidationError(
                f"duplicate permission set identifier '{permission_set.identifier}' "
                f"declared in '{previous}' and '{source.path}'",
                details={"identifier": permission_set.identifier, "sources": [previous, source.path]},
            )
        state.sets[permission_set.identifier] = source.path

    for permission in source.file.permission:
        previous = state.permissions.get(permission.identifier)
        if previous is not None:
            raise ValidationError(
                f"duplicate permission identifier '{permission.identifier}' "
                f"declared in '{previous}' and '{source.path}'",
                details={"identifier": permission.identifier, "sources": [previous, source.path]},
            )
        state.permissions[permission.identifier] = source.path

    if source.file.default is not None:
        if state.default_source is not None:
            raise ValidationError(
                f"default permission declared in both '{state.default_source}' and '{source.path}'",
                details={"sources": [state.default_source, source.path]},
            )
        state.default_source = source.path


def _validate_references(collection: MergedPermissionCollection) -> None:
    """Every set/default entry must name a declared permission or set."""
    known = set(collection.set_identifiers()) | set(collection.permission_identifiers())
    for source in collection:
        for permission_set in source.file.set:
            for ref in permission_set.permissions:
                if ref == permission_set.identifier:
                    raise ValidationError(
                        f"permission set '{ref}' in '{source.path}' references itself",
                        details={"identifier": ref, "source": source.path},
                    )
                if ref not in known:
                    raise ValidationError(
                        f"permission set '{permission_set.identifier}' in '{source.path}' "
                        f"references unknown permission '{ref}'",
                        details={"identifier": permission_set.identifier, "reference": ref, "source": source.path},
                    )
        default = source.file.default
        if default is not None:
            for ref in default.permissions:
                if ref not in known:
                    raise ValidationError(
                        f"default permission in '{source.path}' references unknown permission '{ref}'",
                        details={"reference": ref, "source": source.path},
                    )


def define_permissions(
    pattern: str,
    plugin_name: str,
    out_dir: Path,
    *,
    root: Path,
) -> MergedPermissionCollection:
    """Load and merge every declaration matched by *pattern* under *root*,
    then write the compiled manifest into *out_dir*.

    An empty match is not an error; the collection is simply empty.
    """
    loader = PermissionLoader(root=root, pattern=pattern)
    collection = loader.load()
    compiled = write_compiled_permissions(collection, plugin_name, out_dir)
    logger.info(
        "Permissions loaded",
        extra={
            "plugin": plugin_name,
            "files": len(collection),
            "sets": len(collection.set_identifiers()),
            "permissions": len(collection.permission_identifiers()),
            "compiled": str(compiled),
        },
    )
    return collection
