"""
Permission declaration models.

A plugin declares its access-control surface in permission files. Each file
holds any number of permission sets and permissions plus an optional default
permission. Files are merged, in discovery order, into a
``MergedPermissionCollection`` that the schema emitter, the documentation
generator and the compiled manifest all consume.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Commands(BaseModel):
    """Commands enabled or denied by a permission."""

    model_config = ConfigDict(extra="forbid")

    allow: list[str] = Field(default_factory=list, description="Allowed commands")
    deny: list[str] = Field(default_factory=list, description="Denied commands")


class Scopes(BaseModel):
    """Scope entries attached to a permission; opaque to the compiler."""

    model_config = ConfigDict(extra="forbid")

    allow: Optional[list[Any]] = Field(None, description="Data that defines what is allowed by the scope")
    deny: Optional[list[Any]] = Field(None, description="Data that defines what is denied by the scope")


class Permission(BaseModel):
    """A single named capability a plugin command may require."""

    model_config = ConfigDict(extra="forbid")

    version: Optional[int] = Field(None, ge=1, description="Version of the permission")
    identifier: str = Field(..., description="Unique identifier of the permission")
    description: Optional[str] = Field(None, description="Human-readable description of what the permission does")
    commands: Commands = Field(default_factory=Commands, description="Allowed or denied commands")
    scope: Scopes = Field(default_factory=Scopes, description="Allowed or denied scoped data")
    platforms: Optional[list[str]] = Field(None, description="Target platforms this permission applies to")


class PermissionSet(BaseModel):
    """A named, described grouping of permissions."""

    model_config = ConfigDict(extra="forbid")

    identifier: str = Field(..., description="Unique identifier of the permission set")
    description: str = Field(..., description="Human-readable description of the permission set")
    permissions: list[str] = Field(default_factory=list, description="Permissions or sets included in this set")


class DefaultPermission(BaseModel):
    """The permission granted when none is explicitly requested."""

    model_config = ConfigDict(extra="forbid")

    version: Optional[int] = Field(None, ge=1, description="Version of the default permission")
    description: Optional[str] = Field(None, description="Human-readable description of the default permission")
    permissions: list[str] = Field(default_factory=list, description="Permissions or sets granted by default")


class PermissionFile(BaseModel):
    """A permission declaration file, autogenerated or hand-authored."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_ref: Optional[str] = Field(None, alias="$schema", description="JSON Schema reference for editor support")
    default: Optional[DefaultPermission] = Field(None, description="The default permission set for the plugin")
    set: list[PermissionSet] = Field(default_factory=list, description="A list of permission sets")
    permission: list[Permission] = Field(default_factory=list, description="A list of inlined permissions")


@dataclass(frozen=True)
class PermissionSource:
    """A parsed permission file and the path it was read from."""

    path: str  # POSIX path relative to the source root
    file: PermissionFile


class MergedPermissionCollection:
    """Ordered, read-only concatenation of all loaded permission files."""

    __slots__ = ("_sources",)

    def __init__(self, sources: list[PermissionSource] | tuple[PermissionSource, ...] = ()) -> None:
        self._sources: tuple[PermissionSource, ...] = tuple(sources)

    def __iter__(self) -> Iterator[PermissionSource]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def __repr__(self) -> str:
        return f"MergedPermissionCollection(files={[s.path for s in self._sources]!r})"

    @property
    def sources(self) -> tuple[PermissionSource, ...]:
        return self._sources

    @property
    def files(self) -> list[PermissionFile]:
        return [s.file for s in self._sources]

    @property
    def default(self) -> Optional[DefaultPermission]:
        for source in self._sources:
            if source.file.default is not None:
                return source.file.default
        return None

    def set_identifiers(self) -> list[str]:
        return [s.identifier for source in self._sources for s in source.file.set]

    def permission_identifiers(self) -> list[str]:
        return [p.identifier for source in self._sources for p in source.file.permission]
