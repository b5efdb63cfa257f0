# support_rag/memory/chunker.py

import logging
import re
from typing import List, Tuple

from support_rag.config import (
    CHUNK_SIZE,
    CHUNK_OVERLAP,
    MAX_DOCUMENT_CHARACTERS,
)

logger = logging.getLogger(__name__)


_BLANK_LINES = re.compile(r"\n\s*\n+")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse blank-line runs and whitespace runs to single separators."""

    if not text:
        return ""

    text = _BLANK_LINES.sub("\n", text)

    return _WHITESPACE.sub(" ", text).strip()


def chunk_spans(
    text: str,
    size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[Tuple[int, int]]:
    """
    Compute [start, end) windows over already-normalized text.

    Windows prefer to end just after a '.' found in the second half of the
    window, then at a space in that range, then at the raw offset.
    """

    if size <= 0:
        raise ValueError(f"Invalid chunk size: {size}")

    if overlap < 0:
        raise ValueError(f"Invalid chunk overlap: {overlap}")

    if overlap >= size:
        raise ValueError(
            f"Overlap must be smaller than chunk size "
            f"(overlap={overlap}, size={size})"
        )

    length = len(text)

    if length == 0:
        return []

    if length <= size:
        return [(0, length)]

    spans = []

    start = 0

    while start < length:

        end = start + size

        if end < length:

            floor = start + size // 2

            last_period = text.rfind(".", floor + 1, end)

            if last_period != -1:
                end = last_period + 1
            else:
                last_space = text.rfind(" ", floor + 1, end)

                if last_space != -1:
                    end = last_space

        else:
            end = length

        spans.append((start, end))

        if end >= length:
            break

        next_start = end - overlap

        # windows must strictly advance
        if next_start <= start:
            next_start = end

        start = next_start

    return spans


def chunk_text(
    text: str,
    size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[str]:
    """
    Bounded, overlapping character chunker.

    Guarantees:
    • deterministic chunk generation
    • no chunk longer than `size`
    • no infinite loops, even for text shorter than `overlap`
    • no empty chunks
    """

    if not text:
        logger.warning("Chunking skipped: empty text")
        return []

    if len(text) > MAX_DOCUMENT_CHARACTERS:
        logger.warning(
            "Text exceeds max character limit, truncating",
            extra={
                "original_length": len(text),
                "max_allowed": MAX_DOCUMENT_CHARACTERS,
            },
        )
        text = text[:MAX_DOCUMENT_CHARACTERS]

    clean = normalize_text(text)

    if not clean:
        logger.warning("Chunking skipped: whitespace text")
        return []

    chunks = []

    for start, end in chunk_spans(clean, size=size, overlap=overlap):

        chunk = clean[start:end].strip()

        if chunk:
            chunks.append(chunk)

    logger.info(
        "Chunking completed",
        extra={
            "total_characters": len(clean),
            "chunk_size": size,
            "overlap": overlap,
            "chunks_created": len(chunks),
        },
    )

    return chunks
