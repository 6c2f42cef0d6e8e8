"""Text extraction for uploaded documents."""

import io
import logging
import zipfile

from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ragchat.errors import DocumentExtractionError, UnsupportedMediaTypeError

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PLAIN = "text/plain"
MARKDOWN = "text/markdown"


def extract_text_from_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, KeyError) as e:
        raise DocumentExtractionError(f"Could not read PDF: {e}") from e
    return "\n".join(pages)


def extract_text_from_docx(data: bytes) -> str:
    try:
        doc = DocxDocument(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise DocumentExtractionError(f"Could not read DOCX: {e}") from e
    return "\n".join(paragraph.text for paragraph in doc.paragraphs)


def extract_text(data: bytes, media_type: str) -> str:
    """Extract plain text from document bytes.

    Args:
        data: Raw document bytes
        media_type: MIME type of the document

    Returns:
        Extracted text (line endings normalized to \\n)

    Raises:
        UnsupportedMediaTypeError: If no extractor handles media_type
        DocumentExtractionError: If the bytes are not a readable document of that type
    """
    base_type = media_type.split(";", 1)[0].strip().lower()

    if base_type in (PLAIN, MARKDOWN):
        text = data.decode("utf-8", errors="replace")
    elif base_type == PDF:
        text = extract_text_from_pdf(data)
    elif base_type == DOCX:
        text = extract_text_from_docx(data)
    else:
        raise UnsupportedMediaTypeError(f"No text extractor for media type {media_type!r}")

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    logger.debug(f"Extracted {len(text)} chars from {base_type} document")
    return text
