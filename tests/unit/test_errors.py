from __future__ import annotations

from lib_dotenv_binder.domain.errors import (
    BindingError,
    ConversionFailure,
    DotenvError,
    InvalidSchema,
    MalformedEntry,
    RequiredValueMissing,
    SourceUnavailable,
    UnknownEnumMember,
    UnsupportedType,
)


def test_error_hierarchy() -> None:
    for error_type in (SourceUnavailable, MalformedEntry, InvalidSchema, BindingError):
        assert issubclass(error_type, DotenvError)
    for error_type in (RequiredValueMissing, UnsupportedType, ConversionFailure):
        assert issubclass(error_type, BindingError)
    assert issubclass(UnknownEnumMember, UnsupportedType)


def test_context_is_rendered_in_message() -> None:
    error = ConversionFailure("Cannot convert 'abc' to int", raw="abc", target_type=int)
    assert str(error) == "Cannot convert 'abc' to int"
    same = error.with_context(key="DB_PORT", field="port")
    assert same is error
    assert str(error) == "Cannot convert 'abc' to int (key: DB_PORT, field: port)"


def test_with_context_keeps_existing_identity() -> None:
    error = RequiredValueMissing("missing", key="DB_PASSWORD", field="password")
    error.with_context(key="OTHER", field="other")
    assert (error.key, error.field) == ("DB_PASSWORD", "password")
