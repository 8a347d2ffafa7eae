"""
RFC 4180 CSV grammar engine with UTF-8 text input.

Record separators:
  * strict mode: CRLF only
  * allow_bare_lf / allow_bare_cr additionally accept a lone LF / CR
  * lenient mode accepts any lone CR or LF as a record end

Fields:
  * unquoted fields must not contain comma, quote, CR, LF, C0 control
    characters or DEL in strict mode (TAB is always allowed)
  * quoted fields may contain comma, CR and LF; a doubled quote stands for
    one literal quote

The engine consumes characters one by one with a single character of
lookahead (to recognise CRLF), so it works on a whole str as well as on the
lazy output of the chunked decoder.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Iterable, Iterator, List, Optional

from .errors import CsvSyntaxError, ErrorKind
from .models import ParseOptions
from .rules import COMMA, CR, DQ, LF, TAB, is_control

logger = logging.getLogger(__name__)


class ParserState(Enum):
    START_FIELD = auto()  # a field is about to begin
    IN_FIELD = auto()  # inside an unquoted field
    IN_QUOTED = auto()  # inside a quoted field
    AFTER_QUOTE = auto()  # just saw a quote inside a quoted field


class RowBuilder:
    """Accumulates the field and row currently being built."""

    def __init__(self) -> None:
        self.row: List[str] = []
        self._field: List[str] = []

    def push_char(self, ch: str) -> None:
        self._field.append(ch)

    def end_field(self) -> None:
        self.row.append("".join(self._field))
        self._field = []

    def end_record(self) -> List[str]:
        self.end_field()
        row, self.row = self.row, []
        return row

    def has_pending(self) -> bool:
        return bool(self._field) or bool(self.row)


class CsvGrammarEngine:
    """
    Four-state CSV parser.

    One engine parses one input; rows() may only be driven once.
    """

    def __init__(self, options: Optional[ParseOptions] = None) -> None:
        self.options = options or ParseOptions()
        self.state = ParserState.START_FIELD
        self._builder = RowBuilder()
        self._position = 0
        self._line = 1
        self._column = 1

    def rows(self, chars: Iterable[str]) -> Iterator[List[str]]:
        it = iter(chars)
        ch = next(it, "")
        while ch:
            lookahead = next(it, "")
            row, consumed_lookahead = self._step(ch, lookahead)
            self._advance(ch, lookahead)
            if consumed_lookahead:
                self._advance(lookahead, "")
            if row is not None:
                yield row
            ch = next(it, "") if consumed_lookahead else lookahead

        row = self.finish()
        if row is not None:
            yield row

    def finish(self) -> Optional[List[str]]:
        """Apply end-of-input rules; returns the last row, if any."""
        builder = self._builder
        if self.state is ParserState.IN_QUOTED:
            if self.options.strict:
                self._fail(ErrorKind.UNTERMINATED_QUOTED_FIELD)
            # the quoted field (and the record) end with the input
            return builder.end_record()
        if builder.has_pending():
            return builder.end_record()
        return None

    # --- transitions ---

    def _step(self, ch: str, nxt: str) -> tuple[Optional[List[str]], bool]:
        state = self.state
        if state is ParserState.START_FIELD:
            return self._start_field(ch, nxt)
        if state is ParserState.IN_FIELD:
            return self._in_field(ch, nxt)
        if state is ParserState.IN_QUOTED:
            return self._in_quoted(ch)
        if state is ParserState.AFTER_QUOTE:
            return self._after_quote(ch, nxt)
        raise AssertionError(f"unhandled parser state {state!r}")

    def _start_field(self, ch: str, nxt: str) -> tuple[Optional[List[str]], bool]:
        if ch == DQ:
            self.state = ParserState.IN_QUOTED
            return None, False
        if ch == COMMA:
            # empty field
            self._builder.end_field()
            return None, False
        width = self._separator_width(ch, nxt)
        if width:
            return self._builder.end_record(), width == 2
        self._check_control(ch)
        self.state = ParserState.IN_FIELD
        self._builder.push_char(ch)
        return None, False

    def _in_field(self, ch: str, nxt: str) -> tuple[Optional[List[str]], bool]:
        if ch == COMMA:
            self._builder.end_field()
            self.state = ParserState.START_FIELD
            return None, False
        width = self._separator_width(ch, nxt)
        if width:
            self.state = ParserState.START_FIELD
            return self._builder.end_record(), width == 2
        if ch == DQ and self.options.strict:
            self._fail(ErrorKind.QUOTE_INSIDE_UNQUOTED_FIELD)
        self._check_control(ch)
        self._builder.push_char(ch)
        return None, False

    def _in_quoted(self, ch: str) -> tuple[Optional[List[str]], bool]:
        if ch == DQ:
            # either an escaped quote or the end of the quoted field
            self.state = ParserState.AFTER_QUOTE
        else:
            self._builder.push_char(ch)
        return None, False

    def _after_quote(self, ch: str, nxt: str) -> tuple[Optional[List[str]], bool]:
        if ch == DQ:
            self._builder.push_char(DQ)
            self.state = ParserState.IN_QUOTED
            return None, False
        if ch == COMMA:
            self._builder.end_field()
            self.state = ParserState.START_FIELD
            return None, False
        width = self._separator_width(ch, nxt)
        if width:
            self.state = ParserState.START_FIELD
            return self._builder.end_record(), width == 2
        if self.options.strict:
            self._fail(ErrorKind.INVALID_CHARACTER_AFTER_CLOSING_QUOTE)
        # lenient: the rest is unquoted data of the same field
        self.state = ParserState.IN_FIELD
        self._builder.push_char(ch)
        return None, False

    # --- helpers ---

    def _separator_width(self, ch: str, nxt: str) -> int:
        """Length of the record separator starting at ch (0 if none)."""
        if ch == CR and nxt == LF:
            return 2
        if (ch == LF and self.options.allow_bare_lf) or (ch == CR and self.options.allow_bare_cr):
            return 1
        if ch == CR or ch == LF:
            if self.options.strict:
                self._fail(ErrorKind.BARE_NEWLINE_NOT_ALLOWED)
            return 1
        return 0

    def _check_control(self, ch: str) -> None:
        if self.options.strict and ch != TAB and is_control(ch):
            self._fail(ErrorKind.CONTROL_CHAR_NOT_ALLOWED)

    def _advance(self, ch: str, nxt: str) -> None:
        self._position += 1
        if ch == LF or (ch == CR and nxt != LF):
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _fail(self, kind: ErrorKind) -> None:
        raise CsvSyntaxError(kind, self._position, self._line, self._column)


def iterate_rows(chars: Iterable[str], options: Optional[ParseOptions] = None) -> Iterator[List[str]]:
    """Lazily parse a character sequence into rows."""
    return CsvGrammarEngine(options).rows(chars)


def parse_csv(text: str, options: Optional[ParseOptions] = None) -> List[List[str]]:
    """
    Parse decoded CSV text into a table (list of rows of fields).

    Raises CsvSyntaxError in strict mode; no partial table is returned.
    """
    rows = list(iterate_rows(text, options))
    logger.debug("Parsed CSV text", extra={"rows": len(rows), "characters": len(text)})
    return rows
