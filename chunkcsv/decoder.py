"""
Chunked UTF-8 character decoder.

Turns an ordered sequence of byte chunks into an ordered sequence of
complete characters (1-4 byte UTF-8 sequences). A character whose bytes
straddle a chunk boundary is held back as a fragment and emitted once the
rest arrives, so the output never depends on where the chunks were cut.

Only leading bytes are classified; continuation bytes are validated later,
when a character is turned into text (iterate_text).
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Literal

from .errors import InvalidUtf8Error, TruncatedCharacterError

logger = logging.getLogger(__name__)

TruncationPolicy = Literal["warn", "error"]


def char_length(lead: int) -> int:
    """Byte length of the character starting with lead byte `lead`."""
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class CharacterDecoder:
    """
    Stateful splitter of byte chunks into characters.

    The fragment buffer is owned by this instance; feed chunks in order,
    exhausting each feed() result before the next call, then call finish()
    once.
    """

    def __init__(self, on_truncated: TruncationPolicy = "warn") -> None:
        if on_truncated not in ("warn", "error"):
            raise ValueError(f"Unsupported truncation policy: {on_truncated}")
        self.on_truncated = on_truncated
        self._fragment = bytearray()
        self.bytes_consumed = 0
        self.characters_emitted = 0
        self.truncated = b""
        self._scanning = False

    @property
    def pending(self) -> bytes:
        return bytes(self._fragment)

    def feed(self, chunk: bytes) -> Iterator[bytes]:
        self._check_idle()
        self._scanning = True
        return self._scan(chunk)

    def _check_idle(self) -> None:
        if self._scanning:
            raise RuntimeError("previous chunk was not fully consumed")

    def _scan(self, chunk: bytes) -> Iterator[bytes]:
        size = len(chunk)
        pos = 0

        if self._fragment:
            need = char_length(self._fragment[0]) - len(self._fragment)
            if need > size:
                # still not enough, carry everything over
                self._fragment += chunk
                self.bytes_consumed += size
                self._scanning = False
                return
            self._fragment += chunk[:need]
            character = bytes(self._fragment)
            self._fragment.clear()
            self.bytes_consumed += need
            self.characters_emitted += 1
            yield character
            pos = need

        while pos < size:
            end = pos + char_length(chunk[pos])
            if end > size:
                self._fragment += chunk[pos:]
                self.bytes_consumed += size - pos
                self._scanning = False
                return
            self.bytes_consumed += end - pos
            self.characters_emitted += 1
            yield bytes(chunk[pos:end])
            pos = end
        self._scanning = False

    def finish(self) -> None:
        self._check_idle()
        if not self._fragment:
            return

        fragment = bytes(self._fragment)
        offset = self.bytes_consumed - len(fragment)
        self._fragment.clear()
        self.truncated = fragment

        if self.on_truncated == "error":
            raise TruncatedCharacterError(offset, fragment)
        logger.warning(
            "Input is not valid UTF-8: dropped incomplete trailing character",
            extra={"offset": offset, "fragment": fragment.hex()},
        )


def iterate_characters(
    chunks: Iterable[bytes],
    on_truncated: TruncationPolicy = "warn",
    decoder: CharacterDecoder | None = None,
) -> Iterator[bytes]:
    """
    Lazily yield complete characters from an ordered chunk sequence.

    Pass an explicit decoder to read its counters after iteration. To start
    over, build a new iterator over a fresh chunk sequence.
    """
    if decoder is None:
        decoder = CharacterDecoder(on_truncated=on_truncated)
    for chunk in chunks:
        yield from decoder.feed(chunk)
    decoder.finish()


def iterate_text(characters: Iterable[bytes]) -> Iterator[str]:
    """Convert character byte sequences into one-code-point strings."""
    offset = 0
    for raw in characters:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidUtf8Error(offset, raw) from exc
        offset += len(raw)
        yield text


def decode_text(chunks: Iterable[bytes], on_truncated: TruncationPolicy = "warn") -> str:
    return "".join(iterate_text(iterate_characters(chunks, on_truncated=on_truncated)))
