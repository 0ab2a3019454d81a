"""Line parser tests: grammar, quoting, multi-line values, and the failure policies."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_dotenv_binder.adapters.dotenv.parser import (
    DotenvParser,
    LineAccumulator,
    ParserState,
    has_unbalanced_quotes,
    is_multiline_start,
    strip_quotes,
)
from lib_dotenv_binder.adapters.source.default import DefaultSourceReader
from lib_dotenv_binder.domain.errors import MalformedEntry, SourceUnavailable
from lib_dotenv_binder.domain.store import Entry


def _parse(*lines: str, strict: bool = True) -> list[Entry]:
    return DotenvParser(fail_on_malformed=strict).parse_lines(list(lines))


def test_skips_blank_lines_and_comments() -> None:
    assert _parse("", "   ", "# comment", "// also a comment", "A=1") == [Entry("A", "1")]


def test_trailing_comment_and_whitespace_removed() -> None:
    assert _parse("  DB.HOST-NAME =  localhost   # primary") == [Entry("DB.HOST-NAME", "localhost")]


def test_empty_value() -> None:
    assert _parse("EMPTY=", "ALSO_EMPTY = # nothing") == [Entry("EMPTY", ""), Entry("ALSO_EMPTY", "")]


def test_double_quotes_stripped_and_hash_preserved() -> None:
    assert _parse('GREETING="hello # not a comment"') == [Entry("GREETING", "hello # not a comment")]


def test_single_quotes_are_literal() -> None:
    assert _parse("PATTERN='a\\nb #x'") == [Entry("PATTERN", "a\\nb #x")]


def test_escaped_quote_inside_double_quotes() -> None:
    assert _parse('QUOTE="say \\"hi\\""') == [Entry("QUOTE", 'say \\"hi\\"')]


def test_multiline_value_joined_with_newlines() -> None:
    entries = _parse('CERT="-----BEGIN', "line two", 'END-----"', "NEXT=1")
    assert entries == [Entry("CERT", "-----BEGIN\nline two\nEND-----"), Entry("NEXT", "1")]


def test_comment_lines_inside_multiline_value_are_kept() -> None:
    assert _parse('NOTE="first', "# still inside", 'last"') == [Entry("NOTE", "first\n# still inside\nlast")]


def test_unterminated_multiline_value_is_malformed() -> None:
    with pytest.raises(MalformedEntry) as excinfo:
        _parse("A=1", 'OPEN="never closed', "more text")
    assert excinfo.value.line_number == 3


def test_unterminated_multiline_dropped_when_lenient() -> None:
    assert _parse("A=1", 'OPEN="never closed', strict=False) == [Entry("A", "1")]


@pytest.mark.parametrize("line", ["no separator here", "=value", "BAD KEY=1", 'A="one" "two"', 'A="x"y"'])
def test_malformed_lines_raise_when_strict(line: str) -> None:
    with pytest.raises(MalformedEntry):
        _parse(line)


def test_malformed_lines_dropped_when_lenient() -> None:
    assert _parse("garbage", "A=1", 'B="x"y"', "C=3", strict=False) == [Entry("A", "1"), Entry("C", "3")]


def test_missing_source_policy(tmp_path: Path) -> None:
    reader = DefaultSourceReader(search_path=[])
    assert DotenvParser(fail_on_missing=False).parse(reader, str(tmp_path), ".env") == []
    with pytest.raises(SourceUnavailable):
        DotenvParser(fail_on_missing=True).parse(reader, str(tmp_path), ".env")


def test_parse_reads_through_reader(write_env, tmp_path: Path) -> None:
    write_env("DB_HOST=localhost\nDB_PASSWORD=123\n#comment\n")
    entries = DotenvParser().parse(DefaultSourceReader(search_path=[]), str(tmp_path), ".env")
    assert entries == [Entry("DB_HOST", "localhost"), Entry("DB_PASSWORD", "123")]


def test_accumulator_transitions() -> None:
    accumulator = LineAccumulator()
    assert accumulator.feed("# comment").state is ParserState.IDLE
    assert accumulator.feed('KEY="start').state is ParserState.ACCUMULATING
    assert accumulator.state is ParserState.ACCUMULATING
    assert accumulator.pending == 'KEY="start'
    assert accumulator.feed("").state is ParserState.ACCUMULATING
    step = accumulator.feed('end"')
    assert step.state is ParserState.COMPLETE
    assert step.entry == Entry("KEY", "start\n\nend")
    assert accumulator.state is ParserState.IDLE
    assert accumulator.pending == ""


def test_accumulator_finish_reports_open_value() -> None:
    accumulator = LineAccumulator()
    accumulator.feed('KEY="open')
    step = accumulator.finish()
    assert step.state is ParserState.MALFORMED
    assert step.text == 'KEY="open'
    assert accumulator.state is ParserState.IDLE
    assert LineAccumulator().finish().state is ParserState.IDLE


def test_quote_helpers() -> None:
    assert is_multiline_start('"open')
    assert not is_multiline_start('"closed"')
    assert not is_multiline_start("plain")
    assert has_unbalanced_quotes('"')
    assert has_unbalanced_quotes('"a" b')
    assert not has_unbalanced_quotes('"a\\"b"')
    assert strip_quotes('"a"') == "a"
    assert strip_quotes('"') == '"'


KEY = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ_0123456789.-", min_size=1, max_size=12)
PLAIN_VALUE = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789/:@%+ ", max_size=16)
QUOTED_BODY = st.text(alphabet="abcdefghijklmnopqrstuvwxyz #=' ", max_size=16)


@given(key=KEY, value=PLAIN_VALUE)
def test_plain_lines_yield_trimmed_value(key: str, value: str) -> None:
    assert _parse(f"{key}={value}") == [Entry(key, value.strip())]


@given(key=KEY, body=QUOTED_BODY)
def test_double_quoted_value_keeps_inner_text(key: str, body: str) -> None:
    assert _parse(f'{key}="{body}"') == [Entry(key, body)]


@given(
    key=KEY,
    first=st.text(alphabet="abcxyz", min_size=1, max_size=8),
    rest=st.lists(st.text(alphabet="abc xyz#", max_size=8), max_size=4),
)
def test_multiline_values_accumulate_until_closing_quote(key: str, first: str, rest: list[str]) -> None:
    [entry] = _parse(f'{key}="{first}', *rest, 'tail"')
    assert entry.value == "\n".join([first, *rest, "tail"])


def test_parse_text_splits_lines() -> None:
    assert DotenvParser().parse_text("A=1\r\n\r\nB='two'\n") == [Entry("A", "1"), Entry("B", "two")]


def test_indented_comment_lines_are_skipped() -> None:
    assert _parse("   # indented comment", "\t// indented too", "A=1") == [Entry("A", "1")]


def test_indented_comment_inside_multiline_value_is_kept() -> None:
    assert _parse('NOTE="first', "  # kept", 'last"') == [Entry("NOTE", "first\n  # kept\nlast")]
