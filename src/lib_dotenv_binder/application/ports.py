"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the composition root relies on so the reader,
the environment source, and the descriptor producers stay replaceable.

Contents
--------
* :class:`SourceReader` – locates a `.env` document and returns its lines.
* :class:`EnvLoader` – snapshots process environment variables.
* :class:`EntryLookup` – the read-only view the resolver needs from a store.
* :data:`Converter` – signature of a registered conversion function.

System Role
-----------
These protocols enforce Dependency Inversion: adapters implement them, the
application layer only ever types against them.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, runtime_checkable

Converter = Callable[[str], Any]
"""A function mapping one raw string to one concrete target type."""


@runtime_checkable
class SourceReader(Protocol):
    """Resolve ``directory`` + ``filename`` to text lines or raise ``SourceUnavailable``."""

    def read(self, directory: str, filename: str) -> list[str]:
        """Return the document's lines in order."""


@runtime_checkable
class EnvLoader(Protocol):
    """Translate process environment variables into a flat mapping."""

    def load(self, prefix: str = "") -> Mapping[str, str]:
        """Return variables whose names start with *prefix*."""


@runtime_checkable
class EntryLookup(Protocol):
    """Minimal read interface of an entry store."""

    def get(self, key: str) -> str | None:
        """Return the value for *key* or ``None``."""
