# support_rag/models.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional


class UploadResponse(BaseModel):
    """Response after uploading a document."""
    document_id: str
    filename: str
    characters: int
    chunks_created: int
    message: str = "Document uploaded and chunked successfully"


class ChatTurn(BaseModel):
    """One prior message of the conversation."""
    role: str = Field(..., pattern="^(user|model)$")
    text: str = Field(..., max_length=10000)


class ChatRequest(BaseModel):
    """A new customer question plus the conversation so far."""
    question: str = Field(..., min_length=1, max_length=1000)
    history: List[ChatTurn] = Field(default_factory=list)

    @validator('question')
    def validate_question(cls, v):
        """Ensure question is not just whitespace."""
        if not v.strip():
            raise ValueError("Question cannot be empty or only whitespace")
        return v.strip()


class ChatResponse(BaseModel):
    """Answer shown in the chat widget."""
    answer: str
    refused: bool
    failed: bool = False
    strategy: Optional[str] = None
    sources_used: int
    reasoning: Optional[str] = None


class DocumentInfo(BaseModel):
    """Information about a stored document."""
    document_id: str
    filename: str
    characters: int
    chunks_count: int
    upload_timestamp: Optional[str] = None


class ListDocumentsResponse(BaseModel):
    """Response listing all documents in the knowledge base."""
    documents: List[DocumentInfo]
    total_documents: int
    total_chunks: int
    total_characters: int


class DeleteDocumentResponse(BaseModel):
    """Response after deleting a document."""
    document_id: str
    message: str
    success: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    total_documents: int
    total_chunks: int
    strategy: str
    llm_provider: str
    llm_available: bool
