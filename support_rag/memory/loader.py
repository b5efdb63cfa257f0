# support_rag/memory/loader.py

"""
Text extraction for uploaded knowledge-base files.

Architecture contract preserved:
loader → chunker → scorer

Supports:
- PDF files (pypdf)
- Plain text, Markdown, JSON and CSV (decoded as UTF-8)
"""

import io
import logging
import os

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from support_rag.config import (
    ALLOWED_FILE_EXTENSIONS,
    MAX_DOCUMENT_CHARACTERS,
)
from support_rag.exceptions import DocumentLoadError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)


TEXT_EXTENSIONS = (".txt", ".md", ".json", ".csv")


# ============================================================
# SAFETY: CHARACTER LIMIT
# ============================================================

def enforce_character_limit(text: str) -> str:

    if not text:
        return ""

    if len(text) > MAX_DOCUMENT_CHARACTERS:
        logger.warning(
            "Document truncated",
            extra={
                "original_length": len(text),
                "max_allowed": MAX_DOCUMENT_CHARACTERS,
            },
        )
        return text[:MAX_DOCUMENT_CHARACTERS]

    return text


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


# ============================================================
# PDF LOADER
# ============================================================

def load_pdf_text(data: bytes) -> str:
    """
    Pages are joined with a single space so sentences that cross a page
    break stay intact.
    """

    try:
        reader = PdfReader(io.BytesIO(data))

        parts = []

        for page in reader.pages:

            text = page.extract_text()

            if text:
                parts.append(text)

    except (PdfReadError, ValueError, KeyError, OSError) as e:
        raise DocumentLoadError(f"Failed to extract text from PDF: {e}") from e

    return enforce_character_limit(" ".join(parts))


# ============================================================
# TEXT LOADER
# ============================================================

def load_plain_text(data: bytes) -> str:

    return enforce_character_limit(data.decode("utf-8", errors="replace"))


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def load_text(filename: str, data: bytes) -> str:

    extension = file_extension(filename)

    if extension not in ALLOWED_FILE_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type: {extension or filename}"
        )

    if extension == ".pdf":
        text = load_pdf_text(data)
    else:
        text = load_plain_text(data)

    logger.info(
        "Document text extracted",
        extra={
            "extension": extension,
            "bytes": len(data),
            "characters": len(text),
        },
    )

    return text
