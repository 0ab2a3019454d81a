"""Typed conversion of raw strings.

Purpose
-------
Turn a resolved raw string into the value a target field declares: registered
scalar types first, then enumerations, then list-like and set-like containers.

Contents
--------
* :class:`ConversionRegistry` – copy-on-write ``type -> converter`` table.
* :data:`DEFAULT_REGISTRY` – process-wide registry seeded with built-ins.
* :func:`register` / :func:`is_supported` / :func:`convert` – module-level
  shortcuts onto :data:`DEFAULT_REGISTRY`.
* Built-in converters (:func:`parse_bool`, :func:`parse_duration`).

System Role
-----------
Called by :func:`lib_dotenv_binder.application.resolver.bind` once per
resolved field. Registration is expected during start-up; lookups may run on
any thread afterwards.
"""

from __future__ import annotations

import collections.abc
import enum
import re
import threading
import types
import typing
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path, PurePath
from types import MappingProxyType
from typing import Any, Mapping, get_args, get_origin

from ..domain.errors import ConversionFailure, DotenvError, UnknownEnumMember, UnsupportedType
from ..observability import log_debug
from .ports import Converter

_LIST_ORIGINS = (list, tuple, collections.abc.Sequence, collections.abc.MutableSequence)
_SET_ORIGINS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)

_DURATION_PATTERN = re.compile(
    r"([-+]?)P(?:([-+]?\d+)D)?(?:T(?:([-+]?\d+)H)?(?:([-+]?\d+)M)?(?:([-+]?\d+(?:[.,]\d{0,9})?)S)?)?",
    re.IGNORECASE,
)


def parse_bool(raw: str) -> bool:
    """Parse the case-insensitive literals ``true`` and ``false``.

    Examples
    --------
    >>> parse_bool('TRUE'), parse_bool('false')
    (True, False)
    >>> parse_bool('yes')
    Traceback (most recent call last):
    ...
    ValueError: Expected 'true' or 'false', got 'yes'
    """

    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Expected 'true' or 'false', got {raw!r}")


def parse_duration(raw: str) -> timedelta:
    """Parse an ISO-8601 duration of the form ``PnDTnHnMn.nS``.

    Examples
    --------
    >>> parse_duration('PT15M')
    datetime.timedelta(seconds=900)
    >>> parse_duration('P2DT3H4.5S')
    datetime.timedelta(days=2, seconds=10804, microseconds=500000)
    >>> parse_duration('-PT1S')
    datetime.timedelta(days=-1, seconds=86399)
    """

    text = raw.strip()
    match = _DURATION_PATTERN.fullmatch(text)
    if match is None or text.upper().endswith("T") or not any(match.group(i) for i in range(2, 6)):
        raise ValueError(f"Text cannot be parsed to a duration: {raw!r}")
    sign, days, hours, minutes, seconds = match.groups()
    duration = timedelta(
        days=int(days or 0),
        hours=int(hours or 0),
        minutes=int(minutes or 0),
        seconds=float((seconds or "0").replace(",", ".")),
    )
    return -duration if sign == "-" else duration


def _identity(raw: str) -> str:
    return raw


_BUILTINS: dict[Any, Converter] = {
    str: _identity,
    int: int,
    float: float,
    Decimal: Decimal,
    bool: parse_bool,
    timedelta: parse_duration,
    Path: Path,
    PurePath: PurePath,
}


def _type_name(target_type: Any) -> str:
    return getattr(target_type, "__name__", None) or repr(target_type)


def _unwrap_optional(target_type: Any) -> Any:
    """Return ``T`` for ``Optional[T]`` / ``T | None``, otherwise *target_type* itself."""

    if get_origin(target_type) in (typing.Union, types.UnionType):
        members = [arg for arg in get_args(target_type) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return target_type


def _is_enum(target_type: Any) -> bool:
    return isinstance(target_type, type) and issubclass(target_type, enum.Enum)


def _container_origin(target_type: Any) -> Any:
    origin = get_origin(target_type)
    return origin if origin is not None else target_type


def _element_type(target_type: Any) -> Any:
    """Return the declared element type, defaulting to ``str`` for bare containers."""

    args = get_args(target_type)
    if not args:
        return str
    if len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    if len(args) != 1:
        raise UnsupportedType(f"Unsupported container type: {target_type!r}", target_type=target_type)
    return args[0]


def split_items(raw: str) -> list[str]:
    """Split *raw* on commas and trim each piece.

    Trailing empty pieces are dropped, so blank input yields ``[]`` and a
    trailing comma adds nothing; empty pieces in the middle are kept.

    Examples
    --------
    >>> split_items('a, b ,c')
    ['a', 'b', 'c']
    >>> split_items('a,b, ,')
    ['a', 'b']
    >>> split_items('   ')
    []
    """

    pieces = [piece.strip() for piece in raw.split(",")]
    while pieces and not pieces[-1]:
        pieces.pop()
    return pieces


class ConversionRegistry:
    """Registry of exact-type converters plus the structural fallbacks.

    Why
    ----
    Bindings on different threads read the table concurrently while start-up
    code may still add converters. Each registration publishes a brand-new
    read-only mapping under a lock; readers grab the current reference once and
    never observe a half-updated table.

    Examples
    --------
    >>> registry = ConversionRegistry.with_builtins()
    >>> registry.convert('3306', int)
    3306
    >>> registry.convert('a, b ,c', list[str])
    ['a', 'b', 'c']
    >>> registry.is_supported(complex)
    False
    """

    def __init__(self, converters: Mapping[Any, Converter] | None = None) -> None:
        self._lock = threading.Lock()
        self._converters: Mapping[Any, Converter] = MappingProxyType(dict(converters or {}))

    @classmethod
    def with_builtins(cls) -> ConversionRegistry:
        return cls(_BUILTINS)

    def register(self, target_type: Any, converter: Converter) -> None:
        """Register *converter* for *target_type*, replacing any previous one."""

        if not callable(converter):
            raise TypeError("converter must be callable")
        with self._lock:
            updated = dict(self._converters)
            replaced = target_type in updated
            updated[target_type] = converter
            self._converters = MappingProxyType(updated)
        log_debug("converter_registered", stage="converter", path=None, type=_type_name(target_type), replaced=replaced)

    def converter_for(self, target_type: Any) -> Converter | None:
        return self._converters.get(target_type)

    def is_supported(self, target_type: Any) -> bool:
        if target_type in self._converters:
            return True
        inner = _unwrap_optional(target_type)
        if inner is not target_type:
            return self.is_supported(inner)
        origin = _container_origin(target_type)
        return _is_enum(target_type) or origin in _LIST_ORIGINS or origin in _SET_ORIGINS

    def convert(self, raw: str, target_type: Any) -> Any:
        """Convert *raw* to *target_type*.

        Raises
        ------
        ConversionFailure
            When the selected converter rejects *raw*.
        UnsupportedType
            When nothing handles *target_type* (:class:`UnknownEnumMember`
            for enumerations without a matching member).
        """

        converter = self._converters.get(target_type)
        if converter is not None:
            return _apply(converter, raw, target_type)

        inner = _unwrap_optional(target_type)
        if inner is not target_type:
            return self.convert(raw, inner)

        if _is_enum(target_type):
            return _convert_enum(raw, target_type)

        origin = _container_origin(target_type)
        if origin in _LIST_ORIGINS:
            items = self._convert_items(raw, target_type)
            return tuple(items) if origin is tuple else items
        if origin in _SET_ORIGINS:
            items = self._convert_items(raw, target_type)
            return set(items) if origin in (set, collections.abc.MutableSet) else frozenset(items)

        raise UnsupportedType(f"Unsupported type: {_type_name(target_type)}", target_type=target_type)

    def _convert_items(self, raw: str, target_type: Any) -> list[Any]:
        element_type = _element_type(target_type)
        return [self.convert(piece, element_type) for piece in split_items(raw)]


def _apply(converter: Converter, raw: str, target_type: Any) -> Any:
    try:
        return converter(raw)
    except DotenvError:
        raise
    except (ValueError, TypeError, ArithmeticError, InvalidOperation) as exc:
        raise ConversionFailure(
            f"Cannot convert {raw!r} to {_type_name(target_type)}",
            raw=raw,
            target_type=target_type,
        ) from exc


def _convert_enum(raw: str, enum_type: type[enum.Enum]) -> enum.Enum:
    name = raw.strip().upper()
    try:
        return enum_type[name]
    except KeyError:
        members = ", ".join(enum_type.__members__)
        raise UnknownEnumMember(
            f"No member {name!r} in {enum_type.__name__} (expected one of: {members})",
            target_type=enum_type,
        ) from None


DEFAULT_REGISTRY = ConversionRegistry.with_builtins()
"""Process-wide registry used when callers do not pass their own."""


def register(target_type: Any, converter: Converter) -> None:
    """Register *converter* on :data:`DEFAULT_REGISTRY`."""

    DEFAULT_REGISTRY.register(target_type, converter)


def is_supported(target_type: Any) -> bool:
    """Return ``True`` when :data:`DEFAULT_REGISTRY` can convert to *target_type*."""

    return DEFAULT_REGISTRY.is_supported(target_type)


def convert(raw: str, target_type: Any) -> Any:
    """Convert *raw* with :data:`DEFAULT_REGISTRY`."""

    return DEFAULT_REGISTRY.convert(raw, target_type)
