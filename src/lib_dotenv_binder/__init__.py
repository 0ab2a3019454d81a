"""Public package surface for loading `.env` files and binding them onto objects.

``load_dotenv`` builds the immutable entry store, ``bind`` / ``bind_dataclass``
resolve and convert declared fields, and ``register`` extends the process-wide
type converter before any binding runs.
"""

from __future__ import annotations

from .adapters.schema.declarative import env_field, env_ignore, env_prefix, schema_from_dataclass
from .adapters.schema.structured import load_schema
from .application.converter import ConversionRegistry, convert, is_supported, register
from .application.resolver import resolve
from .core import bind, bind_dataclass, load_dotenv
from .domain.binding import MISSING, BindingMetadata, BindingSchema, Resolution, ResolvedValue
from .domain.errors import (
    BindingError,
    ConversionFailure,
    DotenvError,
    InvalidSchema,
    MalformedEntry,
    RequiredValueMissing,
    SourceUnavailable,
    UnknownEnumMember,
    UnsupportedType,
)
from .domain.store import Dotenv, Entry, EntryFilter
from .observability import bind_trace_id, get_logger

__all__ = [
    "MISSING",
    "BindingError",
    "BindingMetadata",
    "BindingSchema",
    "ConversionFailure",
    "ConversionRegistry",
    "Dotenv",
    "DotenvError",
    "Entry",
    "EntryFilter",
    "InvalidSchema",
    "MalformedEntry",
    "RequiredValueMissing",
    "Resolution",
    "ResolvedValue",
    "SourceUnavailable",
    "UnknownEnumMember",
    "UnsupportedType",
    "bind",
    "bind_dataclass",
    "bind_trace_id",
    "convert",
    "env_field",
    "env_ignore",
    "env_prefix",
    "get_logger",
    "is_supported",
    "load_dotenv",
    "load_schema",
    "register",
    "resolve",
    "schema_from_dataclass",
]
