"""Domain-level entry value objects.

Purpose
-------
Anchor the immutable :class:`Entry` pair produced by the parser and the
:class:`Dotenv` lookup table every binding reads from. This module contains no
I/O.

Contents
--------
* :class:`Entry` – one parsed ``key=value`` pair.
* :class:`EntryFilter` – selects which entries :meth:`Dotenv.entries` returns.
* :class:`Dotenv` – ``Mapping`` implementation merging file and environment
  entries.
* :data:`EMPTY_DOTENV` – canonical empty instance.

System Role
-----------
:func:`lib_dotenv_binder.core.load_dotenv` returns a :class:`Dotenv`; the
binding resolver only ever calls :meth:`Dotenv.get` on it.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import overload


@dataclass(frozen=True, slots=True)
class Entry:
    """Immutable ``(key, value)`` pair with quote delimiters already stripped.

    Examples
    --------
    >>> Entry("DB_HOST", "localhost")
    Entry(key='DB_HOST', value='localhost')
    """

    key: str
    value: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Entry key must not be empty")


class EntryFilter(enum.Enum):
    """Restrict :meth:`Dotenv.entries` to a subset of the merged table."""

    IN_ENV_FILE = "in_env_file"


def _last_write_wins(entries: Iterable[Entry]) -> dict[str, str]:
    """Collapse *entries* into a dict where later duplicates replace earlier ones."""

    collapsed: dict[str, str] = {}
    for entry in entries:
        collapsed[entry.key] = entry.value
    return collapsed


@dataclass(frozen=True, eq=False)
class Dotenv(Mapping[str, str]):
    """Immutable merged lookup table of source entries and environment variables.

    Why
    ----
    Binding must observe one stable snapshot per load call, regardless of later
    changes to ``os.environ`` or the source file.

    What
    ----
    Collapses the parsed entries (last write wins), then overlays
    ``environ``; on collision the environment value wins because it is merged
    last. Both tables are wrapped in ``MappingProxyType``.

    Parameters
    ----------
    file_entries:
        Entries in source order, as produced by the line parser.
    environ:
        Process environment snapshot merged on top of the file entries.
    source_path:
        Location the entries were read from, if any.

    Examples
    --------
    >>> store = Dotenv([Entry("A", "1"), Entry("A", "2")], environ={"B": "3"})
    >>> store.get("A"), store.get("B"), store.get("C")
    ('2', '3', None)
    >>> sorted(e.key for e in store.entries(EntryFilter.IN_ENV_FILE))
    ['A']
    """

    file_entries: Iterable[Entry] = ()
    environ: Mapping[str, str] | None = None
    source_path: str | None = None
    _file: Mapping[str, str] = field(init=False, repr=False, compare=False)
    _merged: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        file_map = _last_write_wins(self.file_entries)
        merged = dict(file_map)
        merged.update(self.environ or {})
        object.__setattr__(self, "file_entries", tuple(Entry(k, v) for k, v in file_map.items()))
        object.__setattr__(self, "environ", MappingProxyType(dict(self.environ or {})))
        object.__setattr__(self, "_file", MappingProxyType(file_map))
        object.__setattr__(self, "_merged", MappingProxyType(merged))

    def __getitem__(self, key: str) -> str:
        return self._merged[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._merged)

    def __len__(self) -> int:
        return len(self._merged)

    @overload
    def get(self, key: str) -> str | None: ...

    @overload
    def get(self, key: str, default: str) -> str: ...

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value stored under *key* or *default* when absent."""

        if key is None:
            raise TypeError("key must not be None")
        return self._merged.get(key, default)

    def entries(self, filter: EntryFilter | None = None) -> frozenset[Entry]:
        """Return all merged entries, or only source-file entries for ``IN_ENV_FILE``."""

        table = self._file if filter is EntryFilter.IN_ENV_FILE else self._merged
        return frozenset(Entry(key, value) for key, value in table.items())

    def as_dict(self, *, file_only: bool = False) -> dict[str, str]:
        """Return a mutable copy of the merged (or file-only) table."""

        return dict(self._file if file_only else self._merged)


EMPTY_DOTENV = Dotenv()
"""Shared empty store used when nothing was loaded."""
