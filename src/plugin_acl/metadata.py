"""Read-only package metadata probe for build diagnostics.

Reports the current package's declared metadata without resolving any
dependencies. By default the ``[project]`` table of the workspace's
``pyproject.toml`` is read; a build system may instead configure an external
command that prints the metadata as a JSON object.
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field
from tomlkit.exceptions import TOMLKitError

from .core.exceptions import MetadataError

logger = logging.getLogger(__name__)

PYPROJECT_FILE_NAME = "pyproject.toml"


class PackageMetadata(BaseModel):
    name: str | None = None
    version: str | None = None
    description: str | None = None
    dependencies: list[str] = Field(default_factory=list)  # as declared, never resolved
    manifest_path: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    def format(self) -> str:
        """Readable multi-line dump for build output."""
        lines = [
            "PackageMetadata {",
            f"    name: {self.name!r},",
            f"    version: {self.version!r},",
            f"    description: {self.description!r},",
            f"    manifest_path: {self.manifest_path!r},",
            "    dependencies: [",
        ]
        lines.extend(f"        {dep!r}," for dep in self.dependencies)
        lines.append("    ],")
        lines.append("}")
        return "\n".join(lines)


def _from_mapping(data: dict[str, Any], manifest_path: str | None) -> PackageMetadata:
    deps = data.get("dependencies") or []
    if isinstance(deps, dict):
        deps = [f"{k} {v}".strip() for k, v in deps.items()]
    return PackageMetadata(
        name=data.get("name"),
        version=None if data.get("version") is None else str(data.get("version")),
        description=data.get("description"),
        dependencies=[str(d) for d in deps] if isinstance(deps, list) else [],
        manifest_path=manifest_path,
        raw=data,
    )


def _run_metadata_command(manifest_dir: Path, command: str) -> PackageMetadata:
    argv = shlex.split(command)
    if not argv:
        raise MetadataError(manifest_dir, "metadata command is empty")
    try:
        completed = subprocess.run(
            argv,
            cwd=manifest_dir,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise MetadataError(manifest_dir, f"metadata command not found: {argv[0]}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise MetadataError(
            manifest_dir,
            f"metadata command exited with status {exc.returncode}" + (f": {stderr}" if stderr else ""),
        ) from exc
    except OSError as exc:
        raise MetadataError(manifest_dir, str(exc)) from exc

    try:
        data = json.loads(completed.stdout)
    except ValueError as exc:
        raise MetadataError(manifest_dir, f"metadata command did not print JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MetadataError(manifest_dir, "metadata command must print a JSON object")
    return _from_mapping(data, manifest_path=None)


def _read_pyproject(manifest_dir: Path) -> PackageMetadata:
    pyproject = manifest_dir / PYPROJECT_FILE_NAME
    try:
        document = tomlkit.parse(pyproject.read_text(encoding="utf-8")).unwrap()
    except OSError as exc:
        raise MetadataError(manifest_dir, f"cannot read {PYPROJECT_FILE_NAME}: {exc}") from exc
    except (TOMLKitError, ValueError) as exc:
        raise MetadataError(manifest_dir, f"invalid {PYPROJECT_FILE_NAME}: {exc}") from exc

    project = document.get("project")
    if not isinstance(project, dict):
        raise MetadataError(manifest_dir, f"{PYPROJECT_FILE_NAME} has no [project] table")
    return _from_mapping(project, manifest_path=str(pyproject))


def find_metadata(manifest_dir: Path, *, command: str | None = None) -> PackageMetadata:
    """Query the current package's metadata (no dependency resolution).

    Raises:
        MetadataError: wrapping whatever made the query fail.
    """
    if command:
        metadata = _run_metadata_command(manifest_dir, command)
    else:
        metadata = _read_pyproject(manifest_dir)
    logger.info(
        "Package metadata probed",
        extra={"package": metadata.name, "package_version": metadata.version},
    )
    return metadata
