# support_rag/memory/documents.py

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from support_rag.memory.chunker import chunk_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """
    Uploaded reference document.

    `chunks` is computed once at creation. An empty tuple marks a legacy
    document that was stored without chunks; retrieval then treats
    `full_text` as a single chunk.
    """

    id: str
    name: str
    full_text: str
    chunks: Tuple[str, ...] = ()
    upload_time: datetime = field(default_factory=datetime.utcnow)

    def retrieval_units(self) -> Tuple[str, ...]:
        if self.chunks:
            return self.chunks
        return (self.full_text,)


@dataclass(frozen=True)
class Chunk:
    """A retrieval unit with a lookup-only reference to its document."""

    text: str
    document_id: str
    source_name: str


def generate_document_id() -> str:
    return f"doc_{uuid.uuid4().hex[:12]}"


def create_document(
    name: str,
    text: str,
    document_id: Optional[str] = None,
    chunk_size: Optional[int] = None,
    chunk_overlap: Optional[int] = None,
) -> Document:
    """Build a Document and compute its chunks (ingestion-time only)."""

    kwargs = {}
    if chunk_size is not None:
        kwargs["size"] = chunk_size
    if chunk_overlap is not None:
        kwargs["overlap"] = chunk_overlap

    chunks = chunk_text(text, **kwargs)

    document = Document(
        id=document_id or generate_document_id(),
        name=name,
        full_text=text,
        chunks=tuple(chunks),
    )

    logger.info(
        "Document created",
        extra={
            "doc_id": document.id,
            "doc_name": name,
            "characters": len(text),
            "chunks": len(chunks),
        },
    )

    return document


def flatten_chunks(documents: Iterable[Document]) -> List[Chunk]:
    """All retrieval units across documents, in document then chunk order."""

    return [
        Chunk(text=text, document_id=doc.id, source_name=doc.name)
        for doc in documents
        for text in doc.retrieval_units()
    ]


def total_characters(documents: Iterable[Document]) -> int:
    return sum(len(doc.full_text) for doc in documents)
