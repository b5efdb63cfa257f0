import logging
import time

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from support_rag.config import MAX_FILE_SIZE_MB
from support_rag.exceptions import DocumentLoadError, UnsupportedFileTypeError
from support_rag.memory.documents import create_document
from support_rag.memory.loader import load_text
from support_rag.models import (
    ChatRequest,
    ChatResponse,
    DeleteDocumentResponse,
    DocumentInfo,
    HealthResponse,
    ListDocumentsResponse,
    UploadResponse,
)
from support_rag.observability.logger import (
    log_query_completed,
    log_query_started,
)
from support_rag.observability.metrics import metrics_tracker
from support_rag.workflow.payload import ConversationTurn


# ============================================================
# LOGGER
# ============================================================

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================
# HELPERS
# ============================================================

def _state(request: Request):
    return request.app.state


def _document_info(doc) -> DocumentInfo:

    return DocumentInfo(
        document_id=doc.id,
        filename=doc.name,
        characters=len(doc.full_text),
        chunks_count=len(doc.chunks),
        upload_timestamp=doc.upload_time.isoformat(),
    )


def validate_file_size(content: bytes):

    size_mb = len(content) / (1024 * 1024)

    if size_mb > MAX_FILE_SIZE_MB:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {size_mb:.2f}MB",
        )


# ============================================================
# HEALTH
# ============================================================

@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):

    state = _state(request)

    stats = state.document_store.get_stats()

    client = state.assembler.generation_client

    return HealthResponse(
        status="healthy",
        total_documents=stats["total_documents"],
        total_chunks=stats["total_chunks"],
        strategy=state.config.scoring_strategy,
        llm_provider=state.config.llm_provider,
        llm_available=bool(client is not None and getattr(client, "available", True)),
    )


# ============================================================
# UPLOAD DOCUMENT
# ============================================================

@router.post("/upload", response_model=UploadResponse)
async def upload_document(request: Request, file: UploadFile = File(...)):

    state = _state(request)

    file_bytes = await file.read()

    validate_file_size(file_bytes)

    filename = file.filename or "document"

    try:
        text = load_text(filename, file_bytes)

    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=415, detail=str(e))

    except DocumentLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not text.strip():
        raise HTTPException(status_code=400, detail="No text extracted")

    document = create_document(
        filename,
        text,
        chunk_size=state.config.chunk_size,
        chunk_overlap=state.config.chunk_overlap,
    )

    state.document_store.add(document)

    logger.info(
        "Document ingestion complete",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "doc_id": document.id,
        },
    )

    return UploadResponse(
        document_id=document.id,
        filename=document.name,
        characters=len(document.full_text),
        chunks_created=len(document.chunks),
    )


# ============================================================
# CHAT
# ============================================================

@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest, request: Request):

    state = _state(request)

    request_id = getattr(request.state, "request_id", None)

    start_time = time.time()

    documents = state.document_store.snapshot()

    history = [
        ConversationTurn(role=turn.role, text=turn.text)
        for turn in payload.history
    ]

    log_query_started(
        logger,
        request_id,
        payload.question,
        documents=len(documents),
        history_turns=len(history),
    )

    try:
        result = state.assembler.answer(payload.question, documents, history)

    except Exception:
        metrics_tracker.record_failure()
        raise

    latency = time.time() - start_time

    if result["failed"]:
        metrics_tracker.record_failure()
    else:
        metrics_tracker.record_chat(latency, refused=result["refused"])

    log_query_completed(logger, request_id, latency, result)

    return ChatResponse(**result)


# ============================================================
# LIST DOCUMENTS
# ============================================================

@router.get("/documents", response_model=ListDocumentsResponse)
def list_documents(request: Request):

    documents = [
        _document_info(doc)
        for doc in _state(request).document_store.snapshot()
    ]

    return ListDocumentsResponse(
        documents=documents,
        total_documents=len(documents),
        total_chunks=sum(d.chunks_count for d in documents),
        total_characters=sum(d.characters for d in documents),
    )


# ============================================================
# GET DOCUMENT
# ============================================================

@router.get("/documents/{document_id}", response_model=DocumentInfo)
def get_document(document_id: str, request: Request):

    doc = _state(request).document_store.get(document_id)

    if doc is None:
        raise HTTPException(
            status_code=404,
            detail="Document not found",
        )

    return _document_info(doc)


# ============================================================
# DELETE DOCUMENT
# ============================================================

@router.delete("/documents/{document_id}",
               response_model=DeleteDocumentResponse)
def delete_document(document_id: str, request: Request):

    if not _state(request).document_store.delete(document_id):

        raise HTTPException(
            status_code=404,
            detail="Document not found",
        )

    return DeleteDocumentResponse(
        document_id=document_id,
        message="Deleted",
        success=True,
    )


# ============================================================
# METRICS ENDPOINT
# ============================================================

@router.get("/metrics")
def get_metrics():

    return metrics_tracker.get_metrics()
