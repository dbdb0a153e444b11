"""Configuration management for the plugin ACL compiler.

Uses Pydantic Settings to collect the build environment exactly once per
invocation. The resulting ``BuildSettings`` object is passed explicitly to
every pipeline step; nothing below the builder reads ``os.environ``.
"""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import BuildVarError

# Environment keys of the build inputs, by settings field name.
BUILD_VAR_KEYS: dict[str, str] = {
    "pkg_name": "PLUGIN_PKG_NAME",
    "out_dir": "PLUGIN_OUT_DIR",
    "manifest_links": "PLUGIN_MANIFEST_LINKS",
    "manifest_dir": "PLUGIN_MANIFEST_DIR",
}


class BuildSettings(BaseSettings):
    """Build inputs and tool settings with environment variable support."""

    # Build inputs (set by the calling build system)
    # These stay optional here so a missing one surfaces as a BuildVarError
    # naming the key instead of a settings validation error.
    pkg_name: str | None = Field(None, alias="PLUGIN_PKG_NAME")
    out_dir: str | None = Field(None, alias="PLUGIN_OUT_DIR")
    manifest_links: str | None = Field(None, alias="PLUGIN_MANIFEST_LINKS")
    manifest_dir: str | None = Field(None, alias="PLUGIN_MANIFEST_DIR")

    # Logging configuration
    log_level: str = Field("INFO", alias="PLUGIN_ACL_LOG_LEVEL")
    log_format: str = Field("text", alias="PLUGIN_ACL_LOG_FORMAT")  # text or json

    # Autogenerated command files
    license_header: str = Field("", alias="PLUGIN_ACL_LICENSE_HEADER")

    # External metadata query; when unset the probe reads pyproject.toml
    metadata_command: str | None = Field(None, alias="PLUGIN_ACL_METADATA_COMMAND")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = str(v or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Log level must be a standard logging level name, got '{v}'")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        fmt = str(v or "text").strip().lower()
        if fmt not in ("text", "json"):
            raise ValueError(f"Log format must be one of: text, json (got '{v}')")
        return fmt

    def require(self, field: str) -> str:
        """Return a required build input or raise ``BuildVarError`` naming its key."""
        value = getattr(self, field)
        if value is None or value == "":
            raise BuildVarError(BUILD_VAR_KEYS.get(field, field))
        return value

    @property
    def source_root(self) -> Path:
        """Directory holding ``permissions/``; the manifest dir when known."""
        if self.manifest_dir:
            return Path(self.manifest_dir)
        return Path.cwd()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )


def get_settings() -> BuildSettings:
    """Collect settings from the environment for one build invocation."""
    return BuildSettings()  # type: ignore[call-arg]
