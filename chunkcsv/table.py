"""
End-to-end pipeline: storage resource -> byte chunks -> characters -> rows.

Responsibilities:
- skip a leading UTF-8 BOM on uploads (the grammar engine never trims)
- stream a resource through the chunked decoder into the grammar engine
- collect the table together with read statistics
- build the API response envelope and report
- attach an encoding hint to decode failures (charset-normalizer)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, Iterator, List, Optional

from charset_normalizer import from_bytes

from .config import Settings
from .decoder import CharacterDecoder, TruncationPolicy, iterate_characters, iterate_text
from .errors import DecodeError
from .models import ParseOptions
from .parser import iterate_rows
from .rules import BOM, CHUNK_SIZE, UTF8_BOM
from .source import FileResource, StorageResource, iterate_chunks

logger = logging.getLogger(__name__)


@dataclass
class TableResult:
    rows: List[List[str]] = field(default_factory=list)
    bytes_read: int = 0
    characters: int = 0
    truncated: bytes = b""
    bom_stripped: bool = False


def read_rows(
    resource: StorageResource,
    options: Optional[ParseOptions] = None,
    *,
    chunk_size: int = CHUNK_SIZE,
    on_truncated: TruncationPolicy = "warn",
    decoder: CharacterDecoder | None = None,
    skip_bom: bool = False,
) -> Iterator[List[str]]:
    """Lazily parse a resource; at most one chunk is read ahead of the consumer."""
    chunks = iterate_chunks(resource, chunk_size)
    characters = iterate_characters(chunks, on_truncated=on_truncated, decoder=decoder)
    text = iterate_text(characters)
    if skip_bom:
        text = _skip_bom(text)
    return iterate_rows(text, options)


def _skip_bom(text: Iterator[str]) -> Iterator[str]:
    first = next(text, "")
    if first and first != BOM:
        yield first
    yield from text


def starts_with_bom(resource: StorageResource) -> bool:
    head = resource.read_range(0, min(len(UTF8_BOM), resource.size()))
    return head == UTF8_BOM


def read_table(
    resource: StorageResource,
    options: Optional[ParseOptions] = None,
    *,
    chunk_size: int = CHUNK_SIZE,
    on_truncated: TruncationPolicy = "warn",
    skip_bom: bool = False,
) -> TableResult:
    decoder = CharacterDecoder(on_truncated=on_truncated)
    bom_stripped = skip_bom and starts_with_bom(resource)
    rows = list(read_rows(
        resource, options, chunk_size=chunk_size, decoder=decoder, skip_bom=bom_stripped,
    ))
    result = TableResult(
        rows=rows,
        bytes_read=decoder.bytes_consumed,
        characters=decoder.characters_emitted,
        truncated=decoder.truncated,
        bom_stripped=bom_stripped,
    )
    logger.debug(
        "Read CSV table",
        extra={"rows": len(rows), "bytes_read": result.bytes_read, "characters": result.characters},
    )
    return result


def guess_encoding(sample: bytes) -> Optional[str]:
    """Best-effort encoding name for a byte sample (diagnostics only)."""
    if not sample:
        return None
    match = from_bytes(sample).best()
    if match is None:
        return None
    return match.encoding


def parse_csv_upload(
    fileobj: BinaryIO,
    options: ParseOptions,
    settings: Settings,
) -> Dict[str, Any]:
    """
    Parse an uploaded file object.
    Returns a dict matching the API's response envelope.
    """
    resource = FileResource(fileobj)
    try:
        result = read_table(
            resource,
            options,
            chunk_size=settings.chunk_size,
            on_truncated=settings.on_truncated,
            skip_bom=True,
        )
    except DecodeError as exc:
        sample = resource.read_range(0, min(resource.size(), settings.sniff_bytes))
        exc.detected_encoding = guess_encoding(sample)
        raise

    warnings: list[dict] = []
    if result.bom_stripped:
        warnings.append({
            "issue": "bom_stripped",
            "offset": 0,
            "value": UTF8_BOM.hex(),
            "action": "skipped",
        })
    if result.truncated:
        warnings.append({
            "issue": "truncated_character",
            "offset": result.bytes_read - len(result.truncated),
            "value": result.truncated.hex(),
            "action": "dropped",
        })

    return {
        "rows": result.rows,
        "report": {
            "summary": {
                "rows": len(result.rows),
                "max_columns": max((len(row) for row in result.rows), default=0),
                "bytes_read": result.bytes_read,
                "characters": result.characters,
            },
            "options": options.model_dump(),
            "warnings": warnings,
        },
    }
