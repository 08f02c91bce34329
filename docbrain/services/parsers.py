import io
import os
import zipfile
from dataclasses import dataclass, field
from typing import List, Optional

import docx
import structlog
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from docbrain.errors import DocumentParseError, UnsupportedDocumentError

logger = structlog.get_logger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPES = ("text/plain", "text/markdown")

DOCX_PAGE_CHARS = 3000

EXTENSION_KINDS = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".txt": "text",
    ".md": "text",
}
CONTENT_TYPE_KINDS = {
    PDF_TYPE: "pdf",
    DOCX_TYPE: "docx",
    "text/plain": "text",
    "text/markdown": "text",
}


@dataclass
class ParsedDocument:
    text: str
    pages: List[str] = field(default_factory=list)
    page_count: int = 0


def document_kind(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """pdf, docx or text, judged by content type first and extension second"""
    if content_type:
        kind = CONTENT_TYPE_KINDS.get(content_type.split(";")[0].strip().lower())
        if kind:
            return kind
    ext = os.path.splitext(filename or "")[1].lower()
    kind = EXTENSION_KINDS.get(ext)
    if kind is None:
        raise UnsupportedDocumentError("Unsupported file type. Please upload a PDF or Word document.")
    return kind


# -------------------- PDF --------------------

def parse_pdf(data: bytes) -> ParsedDocument:
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, KeyError, NotImplementedError) as e:
        raise DocumentParseError(f"PDF parse error: {e}") from e
    return ParsedDocument(text="\n\n".join(pages), pages=pages, page_count=len(pages))


# -------------------- DOCX --------------------

def paginate(paragraphs: List[str], page_chars: int = DOCX_PAGE_CHARS) -> List[str]:
    """Group paragraphs into pages of roughly page_chars characters"""
    pages = []
    current = ""
    for para in paragraphs:
        if current and len(current) + len(para) > page_chars:
            pages.append(current.strip())
            current = para
        else:
            current += "\n\n" + para
    if current.strip():
        pages.append(current.strip())
    return pages


def parse_docx(data: bytes) -> ParsedDocument:
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError) as e:
        raise DocumentParseError(f"DOCX parse error: {e}") from e
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    pages = paginate(paragraphs)
    return ParsedDocument(text="\n\n".join(paragraphs), pages=pages, page_count=len(pages))


def parse_text(data: bytes) -> ParsedDocument:
    text = data.decode("utf-8", errors="replace")
    return ParsedDocument(text=text, pages=[text] if text.strip() else [], page_count=1 if text.strip() else 0)


PARSERS = {
    "pdf": parse_pdf,
    "docx": parse_docx,
    "text": parse_text,
}


def parse_document(data: bytes, filename: Optional[str], content_type: Optional[str] = None,
                   allowed_kinds=("pdf", "docx")) -> ParsedDocument:
    kind = document_kind(filename, content_type)
    if kind not in allowed_kinds:
        raise UnsupportedDocumentError("Unsupported file type. Please upload a PDF or Word document.")
    parsed = PARSERS[kind](data)
    logger.info("document_parsed", filename=filename, kind=kind, pages=parsed.page_count, chars=len(parsed.text))
    return parsed
