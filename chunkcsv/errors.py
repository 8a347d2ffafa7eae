from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Taxonomy of CSV grammar violations raised in strict mode."""

    UNEXPECTED_QUOTE_IN_UNQUOTED_FIELD = "unexpected_quote_in_unquoted_field"
    CONTROL_CHAR_NOT_ALLOWED = "control_char_not_allowed"
    BARE_NEWLINE_NOT_ALLOWED = "bare_newline_not_allowed"
    ILLEGAL_CHARACTER_IN_UNQUOTED_FIELD = "illegal_character_in_unquoted_field"
    QUOTE_INSIDE_UNQUOTED_FIELD = "quote_inside_unquoted_field"
    INVALID_CHARACTER_AFTER_CLOSING_QUOTE = "invalid_character_after_closing_quote"
    UNTERMINATED_QUOTED_FIELD = "unterminated_quoted_field"


_MESSAGES = {
    ErrorKind.UNEXPECTED_QUOTE_IN_UNQUOTED_FIELD: "Unexpected quote in unquoted field",
    ErrorKind.CONTROL_CHAR_NOT_ALLOWED: "Control char not allowed in unquoted field",
    ErrorKind.BARE_NEWLINE_NOT_ALLOWED: "Bare newline is not allowed (use CRLF)",
    ErrorKind.ILLEGAL_CHARACTER_IN_UNQUOTED_FIELD: "Illegal character in unquoted field",
    ErrorKind.QUOTE_INSIDE_UNQUOTED_FIELD: "Quote inside unquoted field",
    ErrorKind.INVALID_CHARACTER_AFTER_CLOSING_QUOTE: "Invalid character after closing quote",
    ErrorKind.UNTERMINATED_QUOTED_FIELD: "Unterminated quoted field",
}


class CsvSyntaxError(ValueError):
    """
    Strict-mode grammar violation.

    position is the 0-based character offset of the offending character
    (or of end of input); line and column are 1-based.
    """

    def __init__(self, kind: ErrorKind, position: int, line: int, column: int) -> None:
        self.kind = kind
        self.message = _MESSAGES[kind]
        self.position = position
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, column {column}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "position": self.position,
            "line": self.line,
            "column": self.column,
        }


class DecodeError(ValueError):
    """Byte stream could not be turned into UTF-8 characters."""

    kind = "decode_error"

    def __init__(self, message: str, offset: int) -> None:
        self.message = message
        self.offset = offset
        self.detected_encoding: Optional[str] = None
        super().__init__(f"Byte offset {offset}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "position": self.offset,
            "detected_encoding": self.detected_encoding,
        }


class TruncatedCharacterError(DecodeError):
    """Input ended in the middle of a multi-byte character."""

    kind = "truncated_character"

    def __init__(self, offset: int, fragment: bytes) -> None:
        self.fragment = fragment
        super().__init__(
            f"input ended inside a multi-byte character ({fragment.hex()})", offset
        )


class InvalidUtf8Error(DecodeError):
    """A complete byte sequence is not a valid UTF-8 character."""

    kind = "invalid_utf8"

    def __init__(self, offset: int, sequence: bytes) -> None:
        self.sequence = sequence
        super().__init__(f"invalid UTF-8 sequence {sequence.hex()}", offset)


__all__ = [
    "ErrorKind",
    "CsvSyntaxError",
    "DecodeError",
    "TruncatedCharacterError",
    "InvalidUtf8Error",
]
