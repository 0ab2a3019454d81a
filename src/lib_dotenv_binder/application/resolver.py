"""Binding resolution policy.

Purpose
-------
Decide, field by field, which raw string a target receives: the entry under
the effective key, the declared default, nothing at all, or a
:class:`RequiredValueMissing` failure. Then convert and assign.

Contents
    - ``resolve_field``: the per-field decision (prefix, lookup, default, required).
    - ``resolve``: lazy walk over a schema in declaration order.
    - ``bind``: resolve, convert, and ``setattr`` onto a target (fail-fast).

System Role
-----------
Pure with respect to I/O: it only calls ``get`` on the store handed in, so it
works against any :class:`~lib_dotenv_binder.application.ports.EntryLookup`.
"""

from __future__ import annotations

from typing import Iterator, TypeVar

from ..domain.binding import BindingMetadata, BindingSchema, Resolution, ResolvedValue
from ..domain.errors import BindingError, RequiredValueMissing
from ..observability import log_debug, log_error
from .converter import DEFAULT_REGISTRY, ConversionRegistry
from .ports import EntryLookup

T = TypeVar("T")


def resolve_field(store: EntryLookup, metadata: BindingMetadata) -> ResolvedValue:
    """Resolve one field against *store*.

    Why
    ----
    Default text wins over required-ness, and a field that is neither present
    nor defaulted nor required is simply left alone.

    Examples
    --------
    >>> from lib_dotenv_binder.domain.store import Dotenv, Entry
    >>> store = Dotenv([Entry("DB_HOST", "localhost")])
    >>> resolve_field(store, BindingMetadata("host", "HOST", prefix="DB_")).raw
    'localhost'
    >>> resolve_field(store, BindingMetadata("port", "PORT", default="3306", prefix="DB_")).origin
    'default'
    >>> resolve_field(store, BindingMetadata("user", "USER", prefix="DB_")).state
    <Resolution.ABSENT: 'absent'>
    """

    key = metadata.effective_key
    raw = store.get(key)
    if raw is not None:
        return ResolvedValue(metadata, key, Resolution.VALUE, raw, "entry")

    if metadata.has_default:
        return ResolvedValue(metadata, key, Resolution.VALUE, str(metadata.default), "default")

    if metadata.required:
        message = metadata.message or f"Missing required env var: {key}"
        log_error("field_required_missing", stage="binding", path=None, key=key, field=metadata.attribute)
        raise RequiredValueMissing(message, key=key, field=metadata.attribute)

    return ResolvedValue(metadata, key, Resolution.ABSENT)


def resolve(store: EntryLookup, schema: BindingSchema) -> Iterator[ResolvedValue]:
    """Yield one :class:`ResolvedValue` per non-ignored field, in declaration order.

    The generator stops at the first failure; fields after it are never looked up.
    """

    for metadata in schema.bound_fields():
        resolved = resolve_field(store, metadata)
        log_debug(
            "field_resolved",
            stage="binding",
            path=None,
            key=resolved.key,
            field=metadata.attribute,
            state=resolved.state.value,
            origin=resolved.origin,
        )
        yield resolved


def bind(
    target: T,
    store: EntryLookup,
    schema: BindingSchema,
    *,
    registry: ConversionRegistry | None = None,
) -> T:
    """Assign converted values for every resolvable field of *schema* onto *target*.

    Fields resolved as absent keep whatever value *target* already holds.
    The first failure propagates with the effective key and attribute name
    attached; attributes assigned before it are not rolled back.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> from lib_dotenv_binder.domain.store import Dotenv, Entry
    >>> schema = BindingSchema.builder("DB_").field("port", "PORT", default="3306", type=int).build()
    >>> bind(SimpleNamespace(), Dotenv([]), schema).port
    3306
    """

    if target is None:
        raise ValueError("Target object cannot be None")
    if store is None:
        raise ValueError("Entry store cannot be None")

    converters = registry or DEFAULT_REGISTRY
    for resolved in resolve(store, schema):
        if resolved.is_absent:
            continue
        metadata = resolved.metadata
        try:
            value = converters.convert(resolved.raw, metadata.type)
        except BindingError as exc:
            log_error("field_bind_failed", stage="binding", path=None, key=resolved.key, field=metadata.attribute, error=exc.message)
            raise exc.with_context(key=resolved.key, field=metadata.attribute)
        setattr(target, metadata.attribute, value)
        log_debug("field_bound", stage="binding", path=None, key=resolved.key, field=metadata.attribute, origin=resolved.origin)
    return target
