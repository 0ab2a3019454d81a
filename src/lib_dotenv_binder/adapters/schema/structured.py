"""Structured schema document loaders.

Purpose
-------
Read binding descriptor tables from TOML, JSON, or YAML documents so tools
(and the CLI ``resolve`` command) can bind without Python declarations.

Document shape::

    prefix = "DB_"

    [[fields]]
    attribute = "port"
    key = "PORT"
    type = "int"
    default = "3306"

Contents
--------
* :class:`BaseSchemaLoader` – shared reading and mapping validation.
* :class:`TOMLSchemaLoader`, :class:`JSONSchemaLoader`, :class:`YAMLSchemaLoader`.
* :func:`schema_from_mapping` – converts a parsed document into a schema.
* :func:`load_schema` – suffix-based dispatch.
"""

from __future__ import annotations

import json
import re
import tomllib
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import yaml

from ...domain.binding import MISSING, BindingSchema
from ...domain.errors import InvalidSchema
from ...observability import log_debug, log_error

TYPE_NAMES: dict[str, Any] = {
    "str": str,
    "string": str,
    "int": int,
    "integer": int,
    "float": float,
    "decimal": Decimal,
    "bool": bool,
    "boolean": bool,
    "duration": timedelta,
    "path": Path,
}
_CONTAINER_TYPE = re.compile(r"(list|set)(?:\[(\w+)\])?")


def type_from_name(name: str) -> Any:
    """Map a schema type name to a Python type.

    Examples
    --------
    >>> type_from_name('int')
    <class 'int'>
    >>> type_from_name('list[int]')
    list[int]
    >>> type_from_name('set')
    set[str]
    """

    lowered = name.strip().lower()
    if lowered in TYPE_NAMES:
        return TYPE_NAMES[lowered]
    container = _CONTAINER_TYPE.fullmatch(lowered)
    if container is not None:
        element_name = container.group(2) or "str"
        if element_name not in TYPE_NAMES:
            raise InvalidSchema(f"Unknown element type {element_name!r} in {name!r}")
        element = TYPE_NAMES[element_name]
        return list[element] if container.group(1) == "list" else set[element]  # type: ignore[valid-type]
    raise InvalidSchema(f"Unknown field type {name!r}")


def schema_from_mapping(document: Mapping[str, Any]) -> BindingSchema:
    """Build a :class:`BindingSchema` from a parsed schema document.

    Examples
    --------
    >>> schema = schema_from_mapping({
    ...     "prefix": "DB_",
    ...     "fields": [
    ...         {"attribute": "host", "key": "HOST"},
    ...         {"attribute": "debug", "ignore": True},
    ...     ],
    ... })
    >>> [(m.attribute, m.ignored) for m in schema]
    [('host', False), ('debug', True)]
    """

    prefix = document.get("prefix", "")
    if not isinstance(prefix, str):
        raise InvalidSchema("Schema 'prefix' must be a string")
    fields = document.get("fields", [])
    if not isinstance(fields, list):
        raise InvalidSchema("Schema 'fields' must be a list")

    builder = BindingSchema.builder(prefix)
    for position, raw_field in enumerate(fields):
        if not isinstance(raw_field, Mapping):
            raise InvalidSchema(f"Schema field #{position} must be a table/object")
        attribute = raw_field.get("attribute") or raw_field.get("key")
        if not attribute:
            raise InvalidSchema(f"Schema field #{position} declares neither 'attribute' nor 'key'")
        attribute = str(attribute)
        if raw_field.get("ignore", False):
            builder.ignore(attribute)
            continue
        default = raw_field.get("default", MISSING)
        builder.field(
            attribute,
            str(raw_field.get("key") or attribute.upper()),
            default=MISSING if default is MISSING else _default_text(default),
            required=bool(raw_field.get("required", False)),
            message=raw_field.get("message"),
            type=type_from_name(str(raw_field.get("type", "str"))),
        )
    return builder.build()


def _default_text(value: Any) -> str:
    """Render a document default as raw text (``true`` for booleans, comma lists for arrays)."""

    if value is None:
        raise InvalidSchema("Schema defaults must not be null; omit the default to leave the field unset")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_default_text(item) for item in value)
    return str(value)


class BaseSchemaLoader:
    """Common utilities shared by the structured schema loaders."""

    format = "text"

    def load(self, path: str) -> BindingSchema:
        data = self._decode(self._read(path), path)
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidSchema(f"File {path} did not produce a mapping")
        schema = schema_from_mapping(data)
        log_debug("schema_loaded", stage="schema", path=path, format=self.format, fields=len(schema))
        return schema

    def _read(self, path: str) -> bytes:
        file_path = Path(path)
        if not file_path.is_file():
            raise InvalidSchema(f"Schema file not found: {path}")
        return file_path.read_bytes()

    def _decode(self, payload: bytes, path: str) -> object:
        raise NotImplementedError

    def _invalid(self, path: str, exc: Exception) -> InvalidSchema:
        log_error("schema_file_invalid", stage="schema", path=path, format=self.format, error=str(exc))
        return InvalidSchema(f"Invalid {self.format.upper()} in {path}: {exc}")


class TOMLSchemaLoader(BaseSchemaLoader):
    """Load TOML schema documents using the standard library parser."""

    format = "toml"

    def _decode(self, payload: bytes, path: str) -> object:
        try:
            return tomllib.loads(payload.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc


class JSONSchemaLoader(BaseSchemaLoader):
    """Load JSON schema documents."""

    format = "json"

    def _decode(self, payload: bytes, path: str) -> object:
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise self._invalid(path, exc) from exc


class YAMLSchemaLoader(BaseSchemaLoader):
    """Load YAML schema documents with ``yaml.safe_load``."""

    format = "yaml"

    def _decode(self, payload: bytes, path: str) -> object:
        try:
            return yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc) from exc


_SCHEMA_LOADERS: dict[str, BaseSchemaLoader] = {
    ".toml": TOMLSchemaLoader(),
    ".json": JSONSchemaLoader(),
    ".yaml": YAMLSchemaLoader(),
    ".yml": YAMLSchemaLoader(),
}


def load_schema(path: str | Path) -> BindingSchema:
    """Load the schema document at *path*, choosing the parser by suffix."""

    loader = _SCHEMA_LOADERS.get(Path(path).suffix.lower())
    if loader is None:
        raise InvalidSchema(f"Unsupported schema format: {path} (expected .toml, .json, .yaml or .yml)")
    return loader.load(str(path))
