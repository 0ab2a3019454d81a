"""`.env` line parser.

Purpose
-------
Turn physical lines into ordered :class:`~lib_dotenv_binder.domain.store.Entry`
records, owning every quoting, continuation, comment, and malformed-line rule.

Contents
--------
* :class:`ParserState` / :class:`ParseStep` – explicit states of the
  accumulation buffer and the outcome of feeding one line.
* :class:`LineAccumulator` – the buffer state machine
  (``IDLE → ACCUMULATING → COMPLETE | MALFORMED``).
* :class:`DotenvParser` – applies the ``fail_on_missing`` and
  ``fail_on_malformed`` policies around the accumulator.
* Quote helpers (:func:`match_entry`, :func:`is_multiline_start`,
  :func:`has_unbalanced_quotes`, :func:`strip_quotes`).

System Role
-----------
Consumes the lines returned by the source reader and feeds the entry store
built by :func:`lib_dotenv_binder.core.load_dotenv`.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable

from ...application.ports import SourceReader
from ...domain.errors import MalformedEntry, SourceUnavailable
from ...domain.store import Entry
from ...observability import log_debug, log_error

QUOTE = '"'

_ENTRY_PATTERN = re.compile(
    r"""\s*([A-Za-z0-9_.\-]+)\s*=\s*('[^']*'|"[^"]*"|[^#]*)?\s*(\#.*)?""",
    re.DOTALL,
)


def match_entry(text: str) -> tuple[str, str] | None:
    """Match *text* against ``key = value [# comment]`` and return ``(key, raw value)``.

    Examples
    --------
    >>> match_entry('DB_HOST = localhost # primary')
    ('DB_HOST', 'localhost ')
    >>> match_entry("TOKEN='a#b'")
    ('TOKEN', "'a#b'")
    >>> match_entry('not an entry') is None
    True
    """

    match = _ENTRY_PATTERN.fullmatch(text)
    if match is None:
        return None
    return match.group(1), match.group(2) or ""


def _closing_quote(value: str) -> int | None:
    """Return the index of the first unescaped ``"`` after the opening one."""

    for index in range(1, len(value)):
        if value[index] == QUOTE and value[index - 1] != "\\":
            return index
    return None


def is_multiline_start(value: str) -> bool:
    """Return ``True`` when *value* opens a double quote it never closes.

    Examples
    --------
    >>> is_multiline_start('"first line')
    True
    >>> is_multiline_start('"done"')
    False
    >>> is_multiline_start('"escaped \\\\" still open')
    True
    """

    trimmed = value.strip()
    return trimmed.startswith(QUOTE) and len(trimmed) > 1 and _closing_quote(trimmed) is None


def has_unbalanced_quotes(value: str) -> bool:
    """Return ``True`` when a double-quoted *value* is not one clean ``"…"`` run.

    Examples
    --------
    >>> has_unbalanced_quotes('"a"b"')
    True
    >>> has_unbalanced_quotes('"a\\\\"b"')
    False
    >>> has_unbalanced_quotes('plain')
    False
    """

    trimmed = value.strip()
    if not trimmed.startswith(QUOTE):
        return False
    if len(trimmed) == 1:
        return True
    return _closing_quote(trimmed) != len(trimmed) - 1


def strip_quotes(value: str) -> str:
    """Trim *value* and remove one pair of surrounding quote delimiters.

    Examples
    --------
    >>> strip_quotes('  "quoted value"  ')
    'quoted value'
    >>> strip_quotes("'literal \\\\n'")
    'literal \\\\n'
    >>> strip_quotes('bare')
    'bare'
    """

    trimmed = value.strip()
    if len(trimmed) > 1 and trimmed[0] == trimmed[-1] and trimmed[0] in {QUOTE, "'"}:
        return trimmed[1:-1]
    return trimmed


def _is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(("#", "//"))


class ParserState(enum.Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class ParseStep:
    """Outcome of one :meth:`LineAccumulator.feed` call."""

    state: ParserState
    entry: Entry | None = None
    text: str | None = None
    reason: str | None = None


class LineAccumulator:
    """Buffer physical lines until they form a complete logical entry.

    The accumulator is only ever :attr:`ParserState.IDLE` or
    :attr:`ParserState.ACCUMULATING` between calls; ``COMPLETE`` and
    ``MALFORMED`` are reported through the returned :class:`ParseStep` and
    reset the buffer.

    Examples
    --------
    >>> acc = LineAccumulator()
    >>> acc.feed('KEY="one').state
    <ParserState.ACCUMULATING: 'accumulating'>
    >>> acc.feed('two"').entry
    Entry(key='KEY', value='one\\ntwo')
    >>> acc.state
    <ParserState.IDLE: 'idle'>
    """

    def __init__(self) -> None:
        self._buffer: list[str] = []
        self._state = ParserState.IDLE

    @property
    def state(self) -> ParserState:
        return self._state

    @property
    def pending(self) -> str:
        """Text accumulated so far (empty when idle)."""

        return "\n".join(self._buffer)

    def feed(self, line: str) -> ParseStep:
        if self._state is ParserState.IDLE and _is_skippable(line):
            return ParseStep(ParserState.IDLE)

        self._buffer.append(line)
        text = self.pending
        matched = match_entry(text)
        if matched is None:
            return self._reject(text, "Malformed entry")

        key, value = matched
        if is_multiline_start(value):
            self._state = ParserState.ACCUMULATING
            return ParseStep(ParserState.ACCUMULATING, text=text)
        if has_unbalanced_quotes(value):
            return self._reject(text, "Malformed entry, unmatched quotes")

        self._reset()
        return ParseStep(ParserState.COMPLETE, entry=Entry(key, strip_quotes(value)), text=text)

    def finish(self) -> ParseStep:
        """Close the input; an open multi-line value becomes malformed."""

        if self._state is ParserState.ACCUMULATING:
            return self._reject(self.pending, "Malformed entry, unterminated multi-line value")
        return ParseStep(ParserState.IDLE)

    def _reject(self, text: str, reason: str) -> ParseStep:
        self._reset()
        return ParseStep(ParserState.MALFORMED, text=text, reason=reason)

    def _reset(self) -> None:
        self._buffer.clear()
        self._state = ParserState.IDLE


class DotenvParser:
    """Parse `.env` lines under the missing-source and malformed-line policies.

    Why
    ----
    Local development files are often absent while production files must be
    present; a single malformed line may be fatal or merely noise. Callers pick
    each behaviour independently.

    Parameters
    ----------
    fail_on_missing:
        Raise :class:`SourceUnavailable` instead of returning no entries.
    fail_on_malformed:
        Raise :class:`MalformedEntry` instead of dropping the offending text
        (a document that is not valid UTF-8 is dropped whole).
    """

    def __init__(self, *, fail_on_missing: bool = False, fail_on_malformed: bool = True) -> None:
        self.fail_on_missing = fail_on_missing
        self.fail_on_malformed = fail_on_malformed

    def parse(self, reader: SourceReader, directory: str, filename: str) -> list[Entry]:
        """Read through *reader* and parse the result.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> from lib_dotenv_binder.adapters.source.default import DefaultSourceReader
        >>> tmp = TemporaryDirectory()
        >>> DotenvParser().parse(DefaultSourceReader(search_path=[]), tmp.name, 'missing.env')
        []
        >>> tmp.cleanup()
        """

        try:
            lines = reader.read(directory, filename)
        except SourceUnavailable as exc:
            if self.fail_on_missing:
                log_error("dotenv_source_unavailable", stage="parser", path=exc.location)
                raise
            log_debug("dotenv_source_skipped", stage="parser", path=exc.location)
            return []
        except MalformedEntry:
            if self.fail_on_malformed:
                raise
            log_debug("dotenv_source_skipped", stage="parser", path=None, directory=directory, filename=filename, reason="undecodable")
            return []
        return self.parse_lines(lines, source=getattr(reader, "last_loaded_path", None))

    def parse_lines(self, lines: Iterable[str], *, source: str | None = None) -> list[Entry]:
        """Return entries for *lines* in physical-line order.

        Examples
        --------
        >>> DotenvParser().parse_lines(['# comment', 'A=1', '', 'B = "two" # note'])
        [Entry(key='A', value='1'), Entry(key='B', value='two')]
        """

        accumulator = LineAccumulator()
        entries: list[Entry] = []
        line_number = 0
        for line_number, line in enumerate(lines, start=1):
            self._apply(accumulator.feed(line), entries, line_number, source)
        self._apply(accumulator.finish(), entries, line_number, source)
        log_debug("dotenv_parsed", stage="parser", path=source, entries=len(entries))
        return entries

    def parse_text(self, text: str, *, source: str | None = None) -> list[Entry]:
        """Split *text* into lines and parse them."""

        return self.parse_lines(text.splitlines(), source=source)

    def _apply(self, step: ParseStep, entries: list[Entry], line_number: int, source: str | None) -> None:
        if step.state is ParserState.COMPLETE and step.entry is not None:
            entries.append(step.entry)
        elif step.state is ParserState.MALFORMED:
            self._malformed(step, line_number, source)

    def _malformed(self, step: ParseStep, line_number: int, source: str | None) -> None:
        message = f"{step.reason}: {step.text!r} (line {line_number})"
        if self.fail_on_malformed:
            log_error("dotenv_malformed_line", stage="parser", path=source, line=line_number)
            raise MalformedEntry(message, line_number=line_number, text=step.text)
        log_debug("dotenv_malformed_line_skipped", stage="parser", path=source, line=line_number)
