import random
import time
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from docbrain.config import Settings, get_settings
from docbrain.errors import DocumentParseError, ToolkitUnavailableError, UnsupportedDocumentError
from docbrain.middleware.rate_limit import extraction_limit
from docbrain.models import ExtractionResult, ExtractRequest, UploadResult
from docbrain.services.monitoring import EXTRACTION_DURATION, EXTRACTION_REQUESTS
from docbrain.services.nlp.extractor import extract_content
from docbrain.services.nlp.toolkit import LanguageToolkit, get_toolkit
from docbrain.services.parsers import parse_document

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])

UPLOAD_CHUNK_BYTES = 1024 * 1024


def nlp_toolkit() -> LanguageToolkit:
    try:
        return get_toolkit()
    except ToolkitUnavailableError as e:
        logger.error("nlp_toolkit_unavailable", error=str(e))
        raise HTTPException(status_code=503, detail="The NLP model is not available. Please try again later.")


def _check_text_length(text: str) -> None:
    settings = get_settings()
    stripped = text.strip()
    if len(stripped) < settings.min_text_chars:
        raise HTTPException(
            status_code=400,
            detail="Could not extract enough text from the document. It may be scanned or image-based.",
        )
    if len(stripped) > settings.max_text_chars:
        raise HTTPException(
            status_code=400,
            detail=f"Document text is too long ({len(stripped)} characters, limit {settings.max_text_chars}).",
        )


async def _read_upload(document: UploadFile, settings: Settings) -> bytes:
    """Upload bytes, read in chunks; 400 as soon as the size limit is passed"""
    buffer = bytearray()
    while True:
        chunk = await document.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            return bytes(buffer)
        buffer.extend(chunk)
        if len(buffer) > settings.max_upload_bytes:
            raise HTTPException(status_code=400, detail=f"File is larger than {settings.max_upload_mb} MB.")


async def _run_extraction(text: str, toolkit: LanguageToolkit, source: str,
                          seed: Optional[int] = None) -> ExtractionResult:
    rng = random.Random(seed) if seed is not None else None
    started = time.time()
    try:
        result = await run_in_threadpool(extract_content, text, toolkit, rng)
    except Exception as e:
        EXTRACTION_REQUESTS.labels(source=source, status="error").inc()
        logger.error("extraction_failed", source=source, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to process the document.")
    EXTRACTION_DURATION.labels(source=source).observe(time.time() - started)
    EXTRACTION_REQUESTS.labels(source=source, status="success").inc()
    return result


@router.post("/upload", response_model=UploadResult)
@extraction_limit()
async def upload_document(request: Request, document: Optional[UploadFile] = File(None),
                          toolkit: LanguageToolkit = Depends(nlp_toolkit)):
    if document is None or not document.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    settings = get_settings()
    data = await _read_upload(document, settings)

    logger.info("processing_upload", filename=document.filename, size_mb=round(len(data) / 1024 / 1024, 2))
    try:
        parsed = await run_in_threadpool(parse_document, data, document.filename, document.content_type)
    except (UnsupportedDocumentError, DocumentParseError) as e:
        EXTRACTION_REQUESTS.labels(source="upload", status="rejected").inc()
        raise HTTPException(status_code=400, detail=str(e))

    _check_text_length(parsed.text)
    result = await _run_extraction(parsed.text, toolkit, source="upload")
    return UploadResult(
        filename=document.filename,
        file_size=len(data),
        page_count=parsed.page_count,
        **result.model_dump(),
    )


@router.post("/extract", response_model=ExtractionResult)
@extraction_limit()
async def extract_text(request: Request, body: ExtractRequest,
                       toolkit: LanguageToolkit = Depends(nlp_toolkit)):
    _check_text_length(body.text)
    return await _run_extraction(body.text, toolkit, source="text", seed=body.seed)


@router.get("/health")
async def api_health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
