"""Diagnostics for loading and binding.

Every event is one short snake_case message on the ``lib_dotenv_binder``
logger. Its keyword fields travel in ``record.context`` together with the
trace id of the ``load_dotenv`` call in progress, so a reader, parser and
resolver event for the same load can be correlated. Each event names its
``stage`` (``source``, ``parser``, ``env``, ``store``, ``schema``,
``binding``, ``converter``) and, where there is one, the document ``path``.

The logger only carries a :class:`logging.NullHandler`; applications attach
their own handlers through :func:`get_logger`.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Any, MutableMapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_dotenv_binder_trace_id", default=None)

_LOGGER = logging.getLogger("lib_dotenv_binder")
_LOGGER.addHandler(logging.NullHandler())


class _ContextAdapter(logging.LoggerAdapter):
    """Move the ``fields`` keyword into ``extra={"context": ...}`` with the trace id."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = kwargs.pop("fields", {})
        kwargs["extra"] = {"context": {"trace_id": TRACE_ID.get(), **fields}}
        return msg, kwargs


_EVENTS = _ContextAdapter(_LOGGER, {})


def get_logger() -> logging.Logger:
    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* for subsequent events in this context; ``None`` clears it.

    >>> bind_trace_id('load-42')
    >>> TRACE_ID.get()
    'load-42'
    >>> bind_trace_id(None)
    """

    TRACE_ID.set(trace_id)


def new_trace_id() -> str:
    """Bind and return a fresh random trace id (one per ``load_dotenv`` call)."""

    trace_id = uuid.uuid4().hex
    TRACE_ID.set(trace_id)
    return trace_id


def log_debug(event: str, **fields: Any) -> None:
    _EVENTS.debug(event, fields=fields)


def log_info(event: str, **fields: Any) -> None:
    _EVENTS.info(event, fields=fields)


def log_error(event: str, **fields: Any) -> None:
    _EVENTS.error(event, fields=fields)
