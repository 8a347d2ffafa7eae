import logging
from typing import Optional

from fastapi import Depends, FastAPI, UploadFile, File, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import CsvSyntaxError, DecodeError
from .logger import setup_logger
from .models import ErrorResponse, ParseResponse, HealthResponse
from .table import parse_csv_upload

setup_logger(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="chunkcsv",
    description="Streaming UTF-8 decoding and RFC 4180 CSV parsing for large files",
    version="0.1.0",
)


@app.exception_handler(CsvSyntaxError)
async def csv_syntax_error_handler(request: Request, exc: CsvSyntaxError) -> JSONResponse:
    logger.warning("CSV syntax error", extra={"error": exc.to_dict()})
    return JSONResponse(status_code=422, content=ErrorResponse(**exc.to_dict()).model_dump())


@app.exception_handler(DecodeError)
async def decode_error_handler(request: Request, exc: DecodeError) -> JSONResponse:
    logger.warning("Decode error", extra={"error": exc.to_dict()})
    return JSONResponse(status_code=422, content=ErrorResponse(**exc.to_dict()).model_dump())


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/parse", response_model=ParseResponse, responses={422: {"model": ErrorResponse}})
def parse_csv_file(
    file: UploadFile = File(...),
    strict: Optional[bool] = None,
    allow_bare_lf: Optional[bool] = None,
    allow_bare_cr: Optional[bool] = None,
    settings: Settings = Depends(get_settings),
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    overrides = {
        key: value
        for key, value in (
            ("strict", strict),
            ("allow_bare_lf", allow_bare_lf),
            ("allow_bare_cr", allow_bare_cr),
        )
        if value is not None
    }
    options = settings.default_options().model_copy(update=overrides)
    return parse_csv_upload(file.file, options, settings)
