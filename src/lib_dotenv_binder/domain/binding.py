"""Binding descriptor value objects.

Purpose
-------
Describe *which* attribute of a target receives *which* key, independent of how
the description was produced (builder calls, dataclass metadata, or a schema
document). The resolver consumes these records and never inspects targets.

Contents
--------
* :data:`MISSING` – sentinel for "no default declared".
* :class:`BindingMetadata` – one record per target field.
* :class:`BindingSchema` – ordered descriptor table plus the type-level prefix.
* :class:`SchemaBuilder` – fluent constructor for :class:`BindingSchema`.
* :class:`Resolution` / :class:`ResolvedValue` – per-field resolution outcome.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Any, Iterator

from .errors import InvalidSchema


class _Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing.MISSING


@dataclass(frozen=True, slots=True)
class BindingMetadata:
    """Declarative binding description of one target field.

    Attributes
    ----------
    attribute:
        Attribute name assigned on the target.
    key:
        Declared key name, without prefix. Empty only for ignored fields.
    default:
        Default text, or :data:`MISSING` when none is declared.
    required:
        Raise :class:`RequiredValueMissing` when neither entry nor default exists.
    message:
        Custom required-missing message.
    ignored:
        Excluded from binding altogether.
    prefix:
        Containing type's prefix (``""`` when none).
    type:
        Target type handed to the converter.

    Examples
    --------
    >>> BindingMetadata("port", "PORT", prefix="DB_").effective_key
    'DB_PORT'
    """

    attribute: str
    key: str = ""
    default: str | _Missing = MISSING
    required: bool = False
    message: str | None = None
    ignored: bool = False
    prefix: str = ""
    type: Any = str

    def __post_init__(self) -> None:
        if not self.attribute:
            raise InvalidSchema("Binding metadata requires an attribute name")
        if not self.ignored and not self.key:
            raise InvalidSchema(f"Field '{self.attribute}' declares no key name", field=self.attribute)
        if self.default is None:
            raise InvalidSchema(f"Field '{self.attribute}' declares a None default; omit the default instead", field=self.attribute)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def effective_key(self) -> str:
        """Prefix concatenated verbatim with the declared key."""

        return self.prefix + self.key


@dataclass(frozen=True, slots=True)
class BindingSchema:
    """Ordered descriptor table for one target type.

    Why
    ----
    Decouples the resolver from runtime field enumeration: whoever builds the
    table decides the declaration order and the metadata, the resolver only
    walks it.

    Examples
    --------
    >>> schema = (
    ...     BindingSchema.builder(prefix="DB_")
    ...     .field("host", "HOST")
    ...     .field("port", "PORT", default="3306", type=int)
    ...     .ignore("debug")
    ...     .build()
    ... )
    >>> [m.effective_key for m in schema.bound_fields()]
    ['DB_HOST', 'DB_PORT']
    """

    fields: tuple[BindingMetadata, ...] = ()
    prefix: str = ""

    def __iter__(self) -> Iterator[BindingMetadata]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def bound_fields(self) -> Iterator[BindingMetadata]:
        """Yield non-ignored fields in declaration order."""

        return (meta for meta in self.fields if not meta.ignored)

    def with_prefix(self, prefix: str) -> BindingSchema:
        """Return a copy whose fields all use *prefix*."""

        return BindingSchema(tuple(replace(meta, prefix=prefix) for meta in self.fields), prefix)

    @staticmethod
    def builder(prefix: str = "") -> SchemaBuilder:
        return SchemaBuilder(prefix)


class SchemaBuilder:
    """Accumulate :class:`BindingMetadata` records in declaration order."""

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self._fields: list[BindingMetadata] = []

    def field(
        self,
        attribute: str,
        key: str,
        *,
        default: str | _Missing = MISSING,
        required: bool = False,
        message: str | None = None,
        type: Any = str,
    ) -> SchemaBuilder:
        self._append(
            BindingMetadata(
                attribute,
                key,
                default=default,
                required=required,
                message=message,
                prefix=self._prefix,
                type=type,
            )
        )
        return self

    def ignore(self, attribute: str) -> SchemaBuilder:
        self._append(BindingMetadata(attribute, ignored=True, prefix=self._prefix))
        return self

    def add(self, metadata: BindingMetadata) -> SchemaBuilder:
        """Append a pre-built record, re-homing it under this builder's prefix."""

        self._append(replace(metadata, prefix=self._prefix))
        return self

    def build(self) -> BindingSchema:
        return BindingSchema(tuple(self._fields), self._prefix)

    def _append(self, metadata: BindingMetadata) -> None:
        if any(existing.attribute == metadata.attribute for existing in self._fields):
            raise InvalidSchema(f"Field '{metadata.attribute}' declared twice", field=metadata.attribute)
        self._fields.append(metadata)


class Resolution(enum.Enum):
    VALUE = "value"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    """Outcome of resolving one field.

    ``raw`` is ``None`` exactly when ``state`` is :attr:`Resolution.ABSENT`;
    ``origin`` tells whether the text came from an ``"entry"`` or the
    ``"default"``.
    """

    metadata: BindingMetadata
    key: str
    state: Resolution
    raw: str | None = None
    origin: str | None = None

    @property
    def is_absent(self) -> bool:
        return self.state is Resolution.ABSENT
