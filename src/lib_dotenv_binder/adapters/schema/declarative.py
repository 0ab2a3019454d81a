"""Declarative (dataclass) descriptor producer.

Purpose
-------
Let applications declare bindings next to their settings dataclasses and turn
those declarations into a :class:`~lib_dotenv_binder.domain.binding.BindingSchema`.

Contents
--------
* :func:`env_field` / :func:`env_ignore` – ``dataclasses.field`` wrappers that
  attach binding metadata.
* :func:`env_prefix` – class decorator recording the type-level prefix.
* :func:`schema_from_dataclass` – builds the descriptor table.

System Role
-----------
This is the only module that enumerates fields at runtime; the resolver only
sees the resulting table.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from ...domain.binding import MISSING, BindingSchema, _Missing
from ...domain.errors import InvalidSchema
from ...observability import log_debug

METADATA_KEY = "lib_dotenv_binder"
PREFIX_ATTRIBUTE = "__dotenv_prefix__"

C = TypeVar("C", bound=type)


@dataclass(frozen=True, slots=True)
class EnvSpec:
    """Binding declaration stored in ``dataclasses.Field.metadata``."""

    key: str = ""
    default: str | _Missing = MISSING
    required: bool = False
    message: str | None = None
    ignore: bool = False


def env_field(
    key: str,
    *,
    default: Any = MISSING,
    required: bool = False,
    message: str | None = None,
    initial: Any = None,
    initial_factory: Callable[[], Any] | None = None,
) -> Any:
    """Declare a dataclass field bound to *key*.

    Parameters
    ----------
    key:
        Key name without the class prefix.
    default:
        Text used when the key is absent; converted like any other raw value.
        ``None`` is rejected; omit it to leave the field unset.
    required / message:
        Raise when the key is absent and no default is declared.
    initial / initial_factory:
        Python value the attribute holds before binding (and keeps when the
        key resolves to nothing).
    """

    if default is None:
        raise InvalidSchema(f"env_field({key!r}) declares default=None; omit the default to leave the field unset")
    spec = EnvSpec(
        key=key,
        default=MISSING if default is MISSING else str(default),
        required=required,
        message=message,
    )
    metadata = {METADATA_KEY: spec}
    if initial_factory is not None:
        return dataclasses.field(default_factory=initial_factory, metadata=metadata)
    return dataclasses.field(default=initial, metadata=metadata)


def env_ignore(initial: Any = None) -> Any:
    """Declare a dataclass field the binder must never touch."""

    return dataclasses.field(default=initial, metadata={METADATA_KEY: EnvSpec(ignore=True)})


def env_prefix(prefix: str) -> Callable[[C], C]:
    """Class decorator recording *prefix* for every bound field; subclasses inherit it.

    Examples
    --------
    >>> @env_prefix("REDIS_")
    ... @dataclasses.dataclass
    ... class Redis:
    ...     port: int = env_field("PORT", default="6379")
    >>> [m.effective_key for m in schema_from_dataclass(Redis)]
    ['REDIS_PORT']
    """

    def decorate(cls: C) -> C:
        setattr(cls, PREFIX_ATTRIBUTE, prefix)
        return cls

    return decorate


def schema_from_dataclass(target: Any) -> BindingSchema:
    """Return the descriptor table for a dataclass type or instance.

    Fields without :func:`env_field` / :func:`env_ignore` metadata are skipped;
    declaration order is preserved.
    """

    cls = target if isinstance(target, type) else type(target)
    if not dataclasses.is_dataclass(cls):
        raise InvalidSchema(f"{cls.__name__} is not a dataclass")

    try:
        hints = typing.get_type_hints(cls)
    except NameError as exc:
        raise InvalidSchema(f"Cannot resolve annotations of {cls.__name__}: {exc}") from exc

    builder = BindingSchema.builder(getattr(cls, PREFIX_ATTRIBUTE, ""))
    for field in dataclasses.fields(cls):
        spec = field.metadata.get(METADATA_KEY)
        if spec is None:
            continue
        if spec.ignore:
            builder.ignore(field.name)
            continue
        builder.field(
            field.name,
            spec.key,
            default=spec.default,
            required=spec.required,
            message=spec.message,
            type=hints.get(field.name, str),
        )
    schema = builder.build()
    log_debug("schema_loaded", stage="schema", path=None, source=cls.__qualname__, fields=len(schema))
    return schema
