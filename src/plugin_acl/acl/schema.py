"""JSON Schema artifacts for permission declarations and the global scope."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema
from pydantic import BaseModel

from ..core.exceptions import ValidationError, WriteFileError
from .models import PermissionFile

logger = logging.getLogger(__name__)

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

GlobalScopeSchema = type[BaseModel] | dict[str, Any]


def permission_schema_path(plugin_name: str, out_dir: Path) -> Path:
    return out_dir / f"{plugin_name}-schema.json"


def global_scope_schema_path(plugin_name: str, out_dir: Path) -> Path:
    return out_dir / f"{plugin_name}-global-scope-schema.json"


def _assert_valid_schema(schema: dict[str, Any], *, context: str) -> None:
    """Raise ``ValidationError`` if *schema* is invalid under its declared dialect.

    Schemas without ``$schema`` are checked against 2020-12.
    """
    validator = jsonschema.validators.validator_for(schema, default=jsonschema.Draft202012Validator)
    try:
        validator.check_schema(schema)
    except jsonschema.SchemaError as exc:
        raise ValidationError(
            f"{context} is not a valid JSON Schema: {exc.message}",
            details={"context": context},
        ) from exc


def _write_json(target: Path, document: dict[str, Any]) -> Path:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as exc:
        raise WriteFileError(target, str(exc)) from exc
    return target


def permission_file_schema(plugin_name: str) -> dict[str, Any]:
    """JSON Schema describing a permission declaration file for *plugin_name*."""
    derived = PermissionFile.model_json_schema(by_alias=True)
    schema: dict[str, Any] = {
        "$schema": JSON_SCHEMA_DIALECT,
        "$id": f"urn:plugin-acl:{plugin_name}:permission-file",
        "title": f"{plugin_name} permission file",
    }
    schema.update({k: v for k, v in derived.items() if k != "title"})
    _assert_valid_schema(schema, context="permission file schema")
    return schema


def generate_schema(plugin_name: str, out_dir: Path) -> Path:
    """Write ``<out_dir>/<plugin>-schema.json``."""
    target = _write_json(permission_schema_path(plugin_name, out_dir), permission_file_schema(plugin_name))
    logger.info("Permission schema written", extra={"plugin": plugin_name, "path": str(target)})
    return target


def global_scope_schema(plugin_name: str, schema: GlobalScopeSchema) -> dict[str, Any]:
    """Namespace a plugin-supplied global scope schema under *plugin_name*.

    *schema* is either a pydantic model class, whose JSON Schema is derived,
    or a ready-made JSON Schema dict.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        derived = schema.model_json_schema()
    elif isinstance(schema, dict):
        derived = dict(schema)
    else:
        raise ValidationError(
            f"global scope schema must be a pydantic model class or a dict, got {type(schema).__name__}",
            details={"type": type(schema).__name__},
        )

    namespaced: dict[str, Any] = {
        "$schema": derived.pop("$schema", JSON_SCHEMA_DIALECT),
        "$id": f"urn:plugin-acl:{plugin_name}:global-scope",
        "title": derived.pop("title", f"{plugin_name} global scope"),
    }
    derived.pop("$id", None)
    namespaced.update(derived)
    _assert_valid_schema(namespaced, context="global scope schema")
    return namespaced


def define_global_scope_schema(schema: GlobalScopeSchema, plugin_name: str, out_dir: Path) -> Path:
    """Write ``<out_dir>/<plugin>-global-scope-schema.json``."""
    target = _write_json(global_scope_schema_path(plugin_name, out_dir), global_scope_schema(plugin_name, schema))
    logger.info("Global scope schema written", extra={"plugin": plugin_name, "path": str(target)})
    return target
