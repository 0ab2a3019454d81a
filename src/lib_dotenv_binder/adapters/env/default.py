"""Environment variable adapter.

Purpose
-------
Snapshot process environment variables into the flat ``dict[str, str]`` the
entry store merges on top of the `.env` entries.

Key behaviours
--------------
* Copies the mapping once so later ``os.environ`` changes never leak into an
  already-built store.
* Optionally keeps only keys starting with a prefix (kept verbatim, unlike
  binding prefixes the loader never strips it).
* Values stay raw strings; typing happens in the converter.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from ...observability import log_debug


class DefaultEnvLoader:
    """Load process environment variables as raw strings."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str = "") -> dict[str, str]:
        """Return a copy of every variable whose name starts with *prefix*.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={'DB_HOST': 'db', 'HOME': '/root'})
        >>> loader.load('DB_')
        {'DB_HOST': 'db'}
        >>> sorted(loader.load())
        ['DB_HOST', 'HOME']
        """

        collected = {key: value for key, value in self._environ.items() if key.startswith(prefix)}
        log_debug("env_variables_loaded", stage="env", path=None, prefix=prefix or None, keys=len(collected))
        return collected

    def export(self, values: Mapping[str, str], *, override: bool = True) -> list[str]:
        """Write *values* into the underlying environment mapping.

        Returns the keys actually written; with ``override=False`` keys that
        already exist are left alone.
        """

        target = self._environ
        if not hasattr(target, "__setitem__"):
            raise TypeError("The configured environment mapping is read-only")
        written = []
        for key, value in values.items():
            if not override and key in target:
                continue
            target[key] = value  # type: ignore[index]
            written.append(key)
        log_debug("env_variables_exported", stage="env", path=None, keys=len(written))
        return written
