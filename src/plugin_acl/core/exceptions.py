"""Custom exceptions for the plugin ACL compiler.

Every failure in the build pipeline is one of the classes below. Components
raise them; only the outermost build wrapper turns them into a diagnostic
line and a process exit status.
"""

from pathlib import Path
from typing import Any


class AclBuildError(Exception):
    """Base exception class for the plugin ACL compiler."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class BuildVarError(AclBuildError):
    """Raised when a required build environment variable is not set."""

    def __init__(self, key: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"expected build environment variable '{key}' to be set",
            error_code="BUILD_VAR",
            details=details or {"key": key},
        )


class CrateNameError(AclBuildError):
    """Raised when the plugin name breaks the hyphenated naming convention."""

    def __init__(self, name: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=(
                f"plugin name '{name}' contains an underscore, "
                "which the plugin naming convention forbids; use hyphens instead"
            ),
            error_code="CRATE_NAME",
            details=details or {"name": name},
        )


class ParseError(AclBuildError):
    """Raised when a permission declaration file cannot be parsed."""

    def __init__(
        self,
        path: str | Path,
        reason: str,
        details: dict[str, Any] | None = None,
        *,
        subject: str = "permission file",
    ):
        super().__init__(
            message=f"failed to parse {subject} '{path}': {reason}",
            error_code="PARSE",
            details=details or {"path": str(path), "reason": reason},
        )


class ValidationError(AclBuildError):
    """Raised when declarations break identifier or cross-file invariants."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="VALIDATION",
            details=details,
        )


class WriteFileError(AclBuildError):
    """Raised when a build artifact cannot be written."""

    def __init__(self, path: str | Path, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"failed to write '{path}': {reason}",
            error_code="WRITE_FILE",
            details=details or {"path": str(path), "reason": reason},
        )


class MetadataError(AclBuildError):
    """Raised when the package metadata query fails."""

    def __init__(self, manifest_dir: str | Path, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"failed to read package metadata in '{manifest_dir}': {reason}",
            error_code="METADATA",
            details=details or {"manifest_dir": str(manifest_dir), "reason": reason},
        )
