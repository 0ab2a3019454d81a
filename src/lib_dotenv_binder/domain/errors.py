"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the reader, the parser, the binding
resolver, and the type converter. The hierarchy lives in the domain layer so
adapters and the application layer may raise it without importing each other.

Contents
--------
* :class:`DotenvError` – umbrella base class carrying optional key/field context.
* :class:`SourceUnavailable` – neither a file nor a packaged resource exists.
* :class:`MalformedEntry` – text did not match the entry grammar.
* :class:`InvalidSchema` – a binding descriptor table could not be built.
* :class:`BindingError` – base for failures while binding a target.
* :class:`RequiredValueMissing`, :class:`UnsupportedType`,
  :class:`UnknownEnumMember`, :class:`ConversionFailure` – binding failures.

System Role
-----------
``SourceUnavailable`` and ``MalformedEntry`` are policy-gated by the parser
flags; every :class:`BindingError` aborts the binding of the current target.
Callers catch :class:`DotenvError` to handle all library failures uniformly.
"""

from __future__ import annotations


class DotenvError(Exception):
    """Base type for all exceptions emitted by ``lib_dotenv_binder``.

    Why
    ----
    Provide a single catch-all type and a uniform way to report *which* key
    and *which* field a failure belongs to.

    Examples
    --------
    >>> str(DotenvError("boom", key="DB_PORT", field="port"))
    'boom (key: DB_PORT, field: port)'
    """

    def __init__(self, message: str, *, key: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.field = field

    def with_context(self, *, key: str | None = None, field: str | None = None) -> "DotenvError":
        """Fill in missing key/field identity and return ``self`` for re-raising."""

        if self.key is None:
            self.key = key
        if self.field is None:
            self.field = field
        return self

    def __str__(self) -> str:
        context = [f"{name}: {value}" for name, value in (("key", self.key), ("field", self.field)) if value]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class SourceUnavailable(DotenvError):
    """Raised when the resolved location matches no file and no packaged resource."""

    def __init__(self, message: str, *, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location


class MalformedEntry(DotenvError):
    """Raised when accumulated text cannot be matched or its quoting is unbalanced.

    Attributes
    ----------
    line_number:
        Physical line (1-based) on which the offending entry ended.
    text:
        Accumulated text that failed to parse.
    """

    def __init__(self, message: str, *, line_number: int | None = None, text: str | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.text = text


class InvalidSchema(DotenvError):
    """A binding descriptor table is inconsistent or a schema document is unreadable."""


class BindingError(DotenvError):
    """Base type for failures that abort binding of the current target."""


class RequiredValueMissing(BindingError):
    """A required field has neither an entry nor a declared default."""


class UnsupportedType(BindingError):
    """No registered converter, enum match, or container strategy applies.

    Attributes
    ----------
    target_type:
        The type the caller asked for.
    """

    def __init__(self, message: str, *, target_type: object = None, key: str | None = None, field: str | None = None) -> None:
        super().__init__(message, key=key, field=field)
        self.target_type = target_type


class UnknownEnumMember(UnsupportedType):
    """The raw text, upper-cased, names no member of the target enumeration."""


class ConversionFailure(BindingError):
    """A converter rejected the specific raw text (the parse error is chained as ``__cause__``)."""

    def __init__(self, message: str, *, raw: str | None = None, target_type: object = None) -> None:
        super().__init__(message)
        self.raw = raw
        self.target_type = target_type
