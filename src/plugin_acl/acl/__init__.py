"""Permission declaration compiler: models, loading, schemas and docs."""

from .autogenerate import autogenerate_command_permissions
from .docs import generate_docs, render_reference
from .identifier import validate_identifier, validate_plugin_name
from .loader import DEFAULT_PERMISSIONS_GLOB, PermissionLoader, define_permissions
from .manifest import COMPILED_FORMAT_VERSION, read_compiled_permissions, write_compiled_permissions
from .models import (
    Commands,
    DefaultPermission,
    MergedPermissionCollection,
    Permission,
    PermissionFile,
    PermissionSet,
    PermissionSource,
    Scopes,
)
from .schema import define_global_scope_schema, generate_schema

__all__ = [
    "COMPILED_FORMAT_VERSION",
    "DEFAULT_PERMISSIONS_GLOB",
    "Commands",
    "DefaultPermission",
    "MergedPermissionCollection",
    "Permission",
    "PermissionFile",
    "PermissionLoader",
    "PermissionSet",
    "PermissionSource",
    "Scopes",
    "autogenerate_command_permissions",
    "define_global_scope_schema",
    "define_permissions",
    "generate_docs",
    "generate_schema",
    "read_compiled_permissions",
    "render_reference",
    "validate_identifier",
    "validate_plugin_name",
    "write_compiled_permissions",
]
