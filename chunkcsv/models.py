from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ParseOptions(BaseModel):
    """Leniency options; fixed for the duration of one parse."""

    model_config = ConfigDict(frozen=True)

    strict: bool = True
    allow_bare_lf: bool = False
    allow_bare_cr: bool = False


class ParseSummary(BaseModel):
    rows: int = 0
    max_columns: int = 0
    bytes_read: int = 0
    characters: int = 0


class ReportItem(BaseModel):
    issue: str
    offset: Optional[int] = None
    value: Optional[str] = None
    action: str


class ParseReport(BaseModel):
    summary: ParseSummary
    options: ParseOptions
    warnings: List[ReportItem] = Field(default_factory=list)


class ParseResponse(BaseModel):
    rows: List[List[str]]
    report: ParseReport


class ErrorResponse(BaseModel):
    kind: str
    message: str
    position: Optional[int] = Field(default=None, examples=[12])
    line: Optional[int] = None
    column: Optional[int] = None
    detected_encoding: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
