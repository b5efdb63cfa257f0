import logging
import threading
from typing import Dict, List, Optional

from support_rag.memory.documents import Document


logger = logging.getLogger(__name__)


class DocumentStore:
    """
    In-memory document registry used by the HTTP layer.

    Uploads and deletes are serialized by a lock; queries receive a
    snapshot list so a concurrent upload never changes the corpus in the
    middle of an assembly. Nothing is persisted.
    """

    def __init__(self):

        self._documents: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def add(self, document: Document):

        with self._lock:

            if document.id in self._documents:
                raise ValueError(f"Duplicate document id: {document.id}")

            self._documents[document.id] = document

        logger.info(
            "Document stored",
            extra={
                "doc_id": document.id,
                "chunks": len(document.chunks),
                "documents": len(self._documents),
            },
        )

    def delete(self, doc_id: str) -> bool:

        with self._lock:
            removed = self._documents.pop(doc_id, None)

        if removed is None:
            logger.warning("Delete of unknown document", extra={"doc_id": doc_id})
            return False

        logger.info("Document deleted", extra={"doc_id": doc_id})

        return True

    def get(self, doc_id: str) -> Optional[Document]:

        with self._lock:
            return self._documents.get(doc_id)

    def snapshot(self) -> List[Document]:
        """Documents in upload order."""

        with self._lock:
            return list(self._documents.values())

    def get_stats(self) -> Dict:

        documents = self.snapshot()

        return {
            "total_documents": len(documents),
            "total_chunks": sum(len(d.chunks) for d in documents),
            "total_characters": sum(len(d.full_text) for d in documents),
        }

    def __len__(self):

        with self._lock:
            return len(self._documents)
