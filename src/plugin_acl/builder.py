"""Build facade: runs the permission compiler pipeline for one plugin.

Typical use from a build hook::

    from plugin_acl import Builder

    Builder(["read_file", "write_file"]).global_scope_schema(MyScope).build()

``try_build()`` raises on the first failure and is what tests and embedding
code should call; ``build()`` is the outermost wrapper that turns an error
into a diagnostic line and a non-zero exit status.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .acl.autogenerate import autogenerate_command_permissions
from .acl.docs import generate_docs
from .acl.identifier import validate_plugin_name
from .acl.loader import DEFAULT_PERMISSIONS_GLOB, define_permissions
from .acl.manifest import compiled_permissions_path
from .acl.models import MergedPermissionCollection
from .acl.schema import GlobalScopeSchema, define_global_scope_schema, generate_schema
from .core.config import BuildSettings, get_settings
from .core.exceptions import AclBuildError, WriteFileError
from .metadata import PackageMetadata, find_metadata

logger = logging.getLogger(__name__)

TOOL_NAME = "plugin-acl"

PERMISSIONS_DIR = Path("permissions")
AUTOGENERATED_DIR = PERMISSIONS_DIR / "autogenerated"
COMMANDS_DIR = AUTOGENERATED_DIR / "commands"


class BuildStage(str, Enum):
    """Pipeline states, in execution order."""

    CONFIGURED = "configured"
    NAME_VALIDATED = "name_validated"
    DIRECTORIES_READY = "directories_ready"
    COMMANDS_AUTOGENERATED = "commands_autogenerated"
    PERMISSIONS_LOADED = "permissions_loaded"
    SCHEMAS_EMITTED = "schemas_emitted"
    DOCS_GENERATED = "docs_generated"
    GLOBAL_SCOPE_EMITTED = "global_scope_emitted"
    METADATA_PROBED = "metadata_probed"
    DONE = "done"


@dataclass
class BuildReport:
    plugin_name: str
    permissions: MergedPermissionCollection
    artifacts: list[Path] = field(default_factory=list)
    generated_commands: list[Path] = field(default_factory=list)
    metadata: PackageMetadata | None = None


class Builder:
    def __init__(self, commands: Sequence[str] = (), *, settings: BuildSettings | None = None):
        self.commands = list(commands)
        self.settings = settings
        self.stage = BuildStage.CONFIGURED
        self._global_scope_schema: GlobalScopeSchema | None = None

    def global_scope_schema(self, schema: GlobalScopeSchema) -> Builder:
        """Set the global scope JSON schema (pydantic model class or dict)."""
        self._global_scope_schema = schema
        return self

    def _advance(self, stage: BuildStage) -> None:
        self.stage = stage
        logger.debug("Build stage reached: %s", stage.value)

    def try_build(self) -> BuildReport:
        """Run the pipeline, raising ``AclBuildError`` on the first failure.

        Files written before a failure are left on disk; the next successful
        build overwrites them.
        """
        settings = self.settings if self.settings is not None else get_settings()
        self.settings = settings
        self.stage = BuildStage.CONFIGURED

        # convention: plugin names should not use underscores
        name = validate_plugin_name(settings.require("pkg_name"))
        out_dir = Path(settings.require("out_dir"))
        # requirement: links must be declared
        settings.require("manifest_links")
        self._advance(BuildStage.NAME_VALIDATED)

        root = settings.source_root
        autogenerated = root / AUTOGENERATED_DIR
        try:
            autogenerated.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFileError(autogenerated, str(exc)) from exc
        self._advance(BuildStage.DIRECTORIES_READY)

        report = BuildReport(plugin_name=name, permissions=MergedPermissionCollection())

        if self.commands:
            report.generated_commands = autogenerate_command_permissions(
                root / COMMANDS_DIR, self.commands, settings.license_header
            )
            self._advance(BuildStage.COMMANDS_AUTOGENERATED)

        report.permissions = define_permissions(DEFAULT_PERMISSIONS_GLOB, name, out_dir, root=root)
        report.artifacts.append(compiled_permissions_path(name, out_dir))
        self._advance(BuildStage.PERMISSIONS_LOADED)

        report.artifacts.append(generate_schema(name, out_dir))
        self._advance(BuildStage.SCHEMAS_EMITTED)

        report.artifacts.append(generate_docs(report.permissions, autogenerated))
        self._advance(BuildStage.DOCS_GENERATED)

        if self._global_scope_schema is not None:
            report.artifacts.append(define_global_scope_schema(self._global_scope_schema, name, out_dir))
            self._advance(BuildStage.GLOBAL_SCOPE_EMITTED)

        manifest_dir = Path(settings.require("manifest_dir"))
        report.metadata = find_metadata(manifest_dir, command=settings.metadata_command)
        self._advance(BuildStage.METADATA_PROBED)

        self._advance(BuildStage.DONE)
        logger.info(
            "Plugin permissions built",
            extra={"plugin": name, "artifacts": len(report.artifacts)},
        )
        return report

    def build(self) -> BuildReport:
        """``try_build`` that prints the error and exits the process on failure."""
        try:
            report = self.try_build()
        except AclBuildError as error:
            print(f"{self._diagnostic_name()}: {error}")
            sys.exit(1)
        if report.metadata is not None:
            print(report.metadata.format())
        return report

    def _diagnostic_name(self) -> str:
        if self.settings is not None and self.settings.pkg_name:
            return self.settings.pkg_name
        return TOOL_NAME
