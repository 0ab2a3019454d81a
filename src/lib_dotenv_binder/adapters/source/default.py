"""Source reader adapter.

Purpose
-------
Implement the :class:`lib_dotenv_binder.application.ports.SourceReader`
protocol: turn a ``(directory, filename)`` pair into the text lines of a
``.env`` document found on the filesystem or inside an installed package.

Contents
--------
* :class:`DefaultSourceReader` – filesystem first, packaged resources second.
* :func:`resolve_location` – the location normalisation rule.
* Helpers (`_from_file_uri`, `_from_package_uri`, `_iter_resource_roots`) that
  perform the individual lookups.

System Role
-----------
Feeds raw lines into :class:`lib_dotenv_binder.adapters.dotenv.parser.DotenvParser`.
The reader knows nothing about entry syntax.
"""

from __future__ import annotations

import sys
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse
from urllib.request import url2pathname

from ...domain.errors import MalformedEntry, SourceUnavailable
from ...observability import log_debug, log_error

FILE_SCHEME = "file:"
PACKAGE_SCHEME = "package:"


def resolve_location(directory: str, filename: str) -> str:
    """Return the logical location string for *directory* and *filename*.

    Backslashes become forward slashes, a trailing ``.env`` literal and one
    trailing slash are removed, then ``/`` and the filename are appended.

    Examples
    --------
    >>> resolve_location('./', '.env')
    './.env'
    >>> resolve_location('C:\\\\app\\\\config\\\\', '.env')
    'C:/app/config/.env'
    >>> resolve_location('/srv/app/.env', 'prod.env')
    '/srv/app/prod.env'
    """

    clean = directory.replace("\\", "/")
    if clean.endswith(".env"):
        clean = clean[: -len(".env")]
    if clean.endswith("/"):
        clean = clean[:-1]
    return f"{clean}/{filename}"


class DefaultSourceReader:
    """Read ``.env`` text from the filesystem or an installed package.

    Why
    ----
    Applications ship default ``.env`` files inside their wheel but let
    operators drop an override next to the working directory; both must be
    reachable through one location string.
    """

    def __init__(self, *, anchor: str = "lib_dotenv_binder", search_path: Iterable[str] | None = None) -> None:
        """Initialise the reader.

        Parameters
        ----------
        anchor:
            Package whose resource tree is searched first for non-filesystem
            locations.
        search_path:
            Roots searched next; defaults to :data:`sys.path` at read time.
        """

        self._anchor = anchor
        self._search_path = list(search_path) if search_path is not None else None
        self.last_loaded_path: str | None = None

    def read(self, directory: str, filename: str) -> list[str]:
        """Return the lines of the document at ``directory``/``filename``.

        Raises
        ------
        SourceUnavailable
            When neither a file nor a packaged resource matches, or the match cannot be read.
        MalformedEntry
            When the document is not valid UTF-8.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> _ = (Path(tmp.name) / '.env').write_text('A=1\\nB=2\\n', encoding='utf-8')
        >>> DefaultSourceReader().read(tmp.name, '.env')
        ['A=1', 'B=2']
        >>> tmp.cleanup()
        """

        location = resolve_location(directory, filename)
        self.last_loaded_path = None

        if location.startswith(FILE_SCHEME):
            return self._read_path(_from_file_uri(location), location)
        if location.startswith(PACKAGE_SCHEME):
            return self._read_resource(_from_package_uri(location), location)

        path = Path(location)
        if path.is_file():
            return self._read_path(path, location)
        return self._read_resource(self._find_resource(location), location)

    def _read_path(self, path: Path, location: str) -> list[str]:
        if not path.is_file():
            log_debug("dotenv_source_missing", stage="source", path=location)
            raise SourceUnavailable(f"Could not find {location}", location=location)
        text = _read_text(path, location)
        self.last_loaded_path = str(path)
        log_debug("dotenv_source_read", stage="source", path=self.last_loaded_path, origin="filesystem", size=len(text))
        return text.splitlines()

    def _read_resource(self, resource: Traversable | None, location: str) -> list[str]:
        if resource is None or not resource.is_file():
            log_debug("dotenv_source_missing", stage="source", path=location)
            raise SourceUnavailable(f"Could not find {location} on the filesystem or in installed packages", location=location)
        text = _read_text(resource, location)
        self.last_loaded_path = str(resource)
        log_debug("dotenv_source_read", stage="source", path=self.last_loaded_path, origin="package", size=len(text))
        return text.splitlines()

    def _find_resource(self, location: str) -> Traversable | None:
        """Search the anchor package, then every search-path root, for *location*."""

        relative = _relative_resource(location)
        if not relative:
            return None
        for root in _iter_resource_roots(self._anchor, self._search_path):
            candidate = _descend(root, relative.split("/"))
            if candidate.is_file():
                return candidate
        return None


def _read_text(source: Path | Traversable, location: str) -> str:
    """Decode *source* as UTF-8; undecodable bytes are malformed, I/O failures unavailable."""

    try:
        return source.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        log_error("dotenv_source_undecodable", stage="source", path=location, error=str(exc))
        raise MalformedEntry(f"{location} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        log_error("dotenv_source_unreadable", stage="source", path=location, error=str(exc))
        raise SourceUnavailable(f"Could not read {location}: {exc}", location=location) from exc


def _relative_resource(location: str) -> str:
    """Strip ``./`` and leading slashes so *location* is root-relative."""

    relative = location[2:] if location.startswith("./") else location
    return relative.lstrip("/")


def _iter_resource_roots(anchor: str, search_path: list[str] | None) -> Iterable[Traversable]:
    try:
        yield resources.files(anchor)
    except ModuleNotFoundError:
        log_debug("dotenv_anchor_missing", stage="source", path=None, anchor=anchor)
    for entry in sys.path if search_path is None else search_path:
        root = Path(entry) if entry else Path.cwd()
        if root.is_dir():
            yield root


def _from_file_uri(location: str) -> Path:
    """Convert an RFC 8089 ``file:`` URI into a local path.

    Examples
    --------
    >>> _from_file_uri('file:///tmp/app/.env').as_posix()
    '/tmp/app/.env'
    """

    parsed = urlparse(location)
    return Path(url2pathname(parsed.path))


def _from_package_uri(location: str) -> Traversable | None:
    """Resolve ``package:<dotted.name>/<path>`` inside an installed package.

    Examples
    --------
    >>> _from_package_uri('package:no_such_package_xyz/.env') is None
    True
    """

    remainder = location[len(PACKAGE_SCHEME) :].lstrip("/")
    package, _, inner = remainder.partition("/")
    if not package or not inner:
        return None
    try:
        root = resources.files(package)
    except ModuleNotFoundError:
        return None
    return _descend(root, [part for part in inner.split("/") if part])


def _descend(root: Traversable, parts: Iterable[str]) -> Traversable:
    node = root
    for part in parts:
        node = node / part
    return node
