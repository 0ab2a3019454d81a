"""Composition root for ``lib_dotenv_binder``.

Purpose
-------
Provide the entry points that wire the source reader, the line parser, the
environment loader, the entry store, the resolver, and the type converter.

Contents
--------
* :func:`load_dotenv` – read, parse, and merge into an immutable :class:`Dotenv`.
* :func:`bind` – bind a target against an explicit :class:`BindingSchema`.
* :func:`bind_dataclass` – bind a dataclass instance declared with
  :func:`~lib_dotenv_binder.adapters.schema.declarative.env_field`.

System Role
-----------
This module is the canonical place for precedence rules: file entries are
merged first and process environment variables last, so the environment wins
on key collisions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

from .adapters.dotenv.parser import DotenvParser
from .adapters.env.default import DefaultEnvLoader
from .adapters.schema.declarative import schema_from_dataclass
from .adapters.source.default import DefaultSourceReader
from .application import resolver
from .application.converter import ConversionRegistry
from .application.ports import SourceReader
from .domain.binding import BindingSchema
from .domain.store import Dotenv
from .observability import log_info, new_trace_id

T = TypeVar("T")

DEFAULT_DIRECTORY = "./"
DEFAULT_FILENAME = ".env"


def load_dotenv(
    *,
    directory: str = DEFAULT_DIRECTORY,
    filename: str = DEFAULT_FILENAME,
    fail_on_missing: bool = False,
    fail_on_malformed: bool = True,
    include_environ: bool = True,
    export: bool = False,
    environ: Mapping[str, str] | None = None,
    reader: SourceReader | None = None,
) -> Dotenv:
    """Return an immutable store holding the `.env` entries and the environment.

    Parameters
    ----------
    directory / filename:
        Logical location handed to the source reader (see
        :func:`~lib_dotenv_binder.adapters.source.default.resolve_location`).
    fail_on_missing:
        Raise :class:`SourceUnavailable` when the document cannot be found;
        otherwise an absent document contributes no entries.
    fail_on_malformed:
        Raise :class:`MalformedEntry` on the first malformed entry; otherwise
        such entries are dropped.
    include_environ:
        Merge process environment variables on top of the file entries.
    export:
        Copy the file entries into ``environ`` (``os.environ`` by default).
    environ:
        Environment mapping to read (and export into); defaults to ``os.environ``.
    reader:
        Alternate :class:`SourceReader`.

    Side Effects
    ------------
    Binds a fresh trace identifier and emits a ``dotenv_loaded`` event.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / '.env').write_text('DB_HOST=localhost\\n', encoding='utf-8')
    >>> store = load_dotenv(directory=tmp.name, environ={'DB_HOST': 'remote'})
    >>> store.get('DB_HOST')
    'remote'
    >>> store.as_dict(file_only=True)
    {'DB_HOST': 'localhost'}
    >>> tmp.cleanup()
    """

    new_trace_id()
    source = reader or DefaultSourceReader()
    parser = DotenvParser(fail_on_missing=fail_on_missing, fail_on_malformed=fail_on_malformed)
    entries = parser.parse(source, directory, filename)
    source_path = getattr(source, "last_loaded_path", None)

    env_loader = DefaultEnvLoader(environ=environ)
    if export and entries:
        env_loader.export({entry.key: entry.value for entry in entries})
    env_values = env_loader.load() if include_environ else {}

    store = Dotenv(entries, environ=env_values, source_path=source_path)
    log_info("dotenv_loaded", stage="store", path=source_path, file_keys=len(store.file_entries), total_keys=len(store))
    return store


def bind(
    target: T,
    schema: BindingSchema,
    dotenv: Dotenv | None = None,
    *,
    registry: ConversionRegistry | None = None,
) -> T:
    """Bind *target* against *schema* using *dotenv* (or a default :func:`load_dotenv`).

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> from lib_dotenv_binder.domain.store import Entry
    >>> schema = BindingSchema.builder("DB_").field("host", "HOST").build()
    >>> bind(SimpleNamespace(), schema, Dotenv([Entry("DB_HOST", "db")])).host
    'db'
    """

    store = dotenv if dotenv is not None else load_dotenv()
    return resolver.bind(target, store, schema, registry=registry)


def bind_dataclass(instance: T, dotenv: Dotenv | None = None, *, registry: ConversionRegistry | None = None) -> T:
    """Bind a dataclass *instance* using the metadata declared on its fields."""

    if instance is None:
        raise ValueError("Target object cannot be None")
    return bind(instance, schema_from_dataclass(instance), dotenv, registry=registry)


__all__ = [
    "DEFAULT_DIRECTORY",
    "DEFAULT_FILENAME",
    "bind",
    "bind_dataclass",
    "load_dotenv",
]
