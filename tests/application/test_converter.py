"""Type converter tests: built-ins, enums, containers, and registration."""

from __future__ import annotations

import enum
import threading
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_dotenv_binder.application.converter import ConversionRegistry, parse_duration
from lib_dotenv_binder.domain.errors import ConversionFailure, UnknownEnumMember, UnsupportedType


class Mode(enum.Enum):
    DEVELOPMENT = "dev"
    PRODUCTION = "prod"


def test_scalars(registry: ConversionRegistry) -> None:
    assert registry.convert("3306", int) == 3306
    assert registry.convert("0.25", float) == 0.25
    assert registry.convert("10.50", Decimal) == Decimal("10.50")
    assert registry.convert(" keep spaces ", str) == " keep spaces "
    assert registry.convert("/etc/app", Path) == Path("/etc/app")


def test_conversion_failure_keeps_cause(registry: ConversionRegistry) -> None:
    with pytest.raises(ConversionFailure) as excinfo:
        registry.convert("abc", int)
    assert excinfo.value.raw == "abc"
    assert excinfo.value.target_type is int
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_decimal_failure(registry: ConversionRegistry) -> None:
    with pytest.raises(ConversionFailure):
        registry.convert("ten", Decimal)


@pytest.mark.parametrize(("raw", "expected"), [("true", True), ("TRUE", True), ("False", False), (" false ", False)])
def test_bool_literals(registry: ConversionRegistry, raw: str, expected: bool) -> None:
    assert registry.convert(raw, bool) is expected


@pytest.mark.parametrize("raw", ["yes", "1", "", "on"])
def test_bool_rejects_other_text(registry: ConversionRegistry, raw: str) -> None:
    with pytest.raises(ConversionFailure):
        registry.convert(raw, bool)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("PT15M", timedelta(minutes=15)),
        ("P1D", timedelta(days=1)),
        ("PT0.5S", timedelta(milliseconds=500)),
        ("pt2h", timedelta(hours=2)),
        ("-PT30S", timedelta(seconds=-30)),
    ],
)
def test_durations(raw: str, expected: timedelta) -> None:
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["P", "PT", "15 minutes", "P1H"])
def test_bad_durations(registry: ConversionRegistry, raw: str) -> None:
    with pytest.raises(ConversionFailure):
        registry.convert(raw, timedelta)


def test_enum_matches_upper_cased_member_name(registry: ConversionRegistry) -> None:
    assert registry.convert("production", Mode) is Mode.PRODUCTION
    assert registry.convert(" Development ", Mode) is Mode.DEVELOPMENT


def test_enum_unknown_member(registry: ConversionRegistry) -> None:
    with pytest.raises(UnknownEnumMember) as excinfo:
        registry.convert("staging", Mode)
    assert isinstance(excinfo.value, UnsupportedType)
    assert excinfo.value.target_type is Mode


def test_lists(registry: ConversionRegistry) -> None:
    assert registry.convert("", list[str]) == []
    assert registry.convert("a, b ,c", list) == ["a", "b", "c"]
    assert registry.convert("1,2,3", list[int]) == [1, 2, 3]
    assert registry.convert("1, 2", tuple[int, ...]) == (1, 2)
    assert registry.convert("dev,prod", list[Mode]) == [Mode.DEVELOPMENT, Mode.PRODUCTION]


def test_sets(registry: ConversionRegistry) -> None:
    assert registry.convert("a,b,a", set[str]) == {"a", "b"}
    assert isinstance(registry.convert("a,b,a", set[str]), set)
    assert registry.convert("1,1,2", frozenset[int]) == frozenset({1, 2})
    assert registry.convert(" ", set) == set()


def test_list_element_failure(registry: ConversionRegistry) -> None:
    with pytest.raises(ConversionFailure):
        registry.convert("1,x", list[int])


def test_optional_unwraps(registry: ConversionRegistry) -> None:
    assert registry.convert("8080", Optional[int]) == 8080
    assert registry.convert("8080", int | None) == 8080


def test_unsupported(registry: ConversionRegistry) -> None:
    assert not registry.is_supported(complex)
    with pytest.raises(UnsupportedType):
        registry.convert("1+2j", complex)
    with pytest.raises(UnsupportedType):
        registry.convert("1,2", tuple[int, str])


def test_is_supported(registry: ConversionRegistry) -> None:
    assert registry.is_supported(int)
    assert registry.is_supported(Mode)
    assert registry.is_supported(list[int])
    assert registry.is_supported(frozenset)
    assert registry.is_supported(Optional[timedelta])


def test_register_adds_and_replaces(registry: ConversionRegistry) -> None:
    registry.register(complex, complex)
    assert registry.convert("1+2j", complex) == complex(1, 2)

    registry.register(int, lambda raw: int(raw, 16))
    assert registry.convert("ff", int) == 255
    assert ConversionRegistry.with_builtins().convert("10", int) == 10


def test_register_rejects_non_callable(registry: ConversionRegistry) -> None:
    with pytest.raises(TypeError):
        registry.register(int, "not callable")  # type: ignore[arg-type]


def test_custom_converter_errors_become_conversion_failures(registry: ConversionRegistry) -> None:
    def reject(raw: str) -> object:
        raise ValueError("no")

    registry.register(bytes, reject)
    with pytest.raises(ConversionFailure):
        registry.convert("x", bytes)


def test_concurrent_reads_during_registration(registry: ConversionRegistry) -> None:
    failures: list[BaseException] = []

    def reader() -> None:
        try:
            for _ in range(500):
                assert registry.convert("42", int) == 42
        except BaseException as exc:  # noqa: BLE001
            failures.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for index in range(50):
        registry.register(type(f"Marker{index}", (), {}), str)
    for thread in threads:
        thread.join()
    assert failures == []


@given(st.integers())
def test_int_text_round_trips(value: int) -> None:
    assert ConversionRegistry.with_builtins().convert(str(value), int) == value


@given(st.lists(st.text(alphabet="abcdefgh", min_size=1, max_size=6), min_size=1, max_size=6))
def test_comma_lists_preserve_order(items: list[str]) -> None:
    raw = " , ".join(items)
    assert ConversionRegistry.with_builtins().convert(raw, list[str]) == items


def test_trailing_commas_add_no_items(registry: ConversionRegistry) -> None:
    assert registry.convert("a,b,", list[str]) == ["a", "b"]
    assert registry.convert("1,2, , ", list[int]) == [1, 2]
    assert registry.convert("a,,b", list[str]) == ["a", "", "b"]
