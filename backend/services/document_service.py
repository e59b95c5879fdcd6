"""Text extraction for knowledge files and documents uploaded to the guided wizard."""
import logging
from io import BytesIO
from pathlib import Path

from PyPDF2 import PdfReader
from docx import Document

from services.errors import ValidationError

logger = logging.getLogger("genie.documents")

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


def extract_text_from_pdf(file_bytes: bytes) -> str:
    reader = PdfReader(BytesIO(file_bytes))
    pages = [page.extract_text() for page in reader.pages]
    return "\n".join(p for p in pages if p).strip()


def extract_text_from_docx(file_bytes: bytes) -> str:
    doc = Document(BytesIO(file_bytes))
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip()).strip()


def extract_document_text(filename: str, file_bytes: bytes) -> str:
    """Extract plain text from an uploaded document based on its extension."""
    ext = Path(filename or "").suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type '{ext or filename}'. Use PDF, DOCX, TXT or MD.")
    if len(file_bytes) > MAX_DOCUMENT_BYTES:
        raise ValidationError("File is larger than 10 MB")

    if ext in (".txt", ".md"):
        return file_bytes.decode("utf-8", errors="replace").strip()

    try:
        if ext == ".pdf":
            return extract_text_from_pdf(file_bytes)
        return extract_text_from_docx(file_bytes)
    except Exception as e:
        logger.warning(f"Text extraction failed for {filename}: {e}")
        raise ValidationError(f"Could not read {filename}: {e}")
