"""plugin-acl: build-time compiler for plugin permission declarations."""

from __future__ import annotations

from plugin_acl.builder import Builder, BuildReport, BuildStage
from plugin_acl.core.config import BuildSettings, get_settings
from plugin_acl.core.exceptions import (
    AclBuildError,
    BuildVarError,
    CrateNameError,
    MetadataError,
    ParseError,
    ValidationError,
    WriteFileError,
)

__all__ = [
    "AclBuildError",
    "BuildReport",
    "BuildSettings",
    "BuildStage",
    "BuildVarError",
    "Builder",
    "CrateNameError",
    "MetadataError",
    "ParseError",
    "ValidationError",
    "WriteFileError",
    "get_settings",
]
