# support_rag/prompts/prompt_builder.py

from typing import Iterable, List, Tuple

from support_rag.memory.documents import Document
from support_rag.memory.scorer import ScoredChunk
from support_rag.prompts.system_prompts import (
    HISTORY_ONLY_MARKER,
    NEW_CONTEXT_CLOSE,
    NEW_CONTEXT_OPEN,
    QUESTION_PREFIX,
)
from support_rag.workflow.payload import ContextPayload, USER_ROLE


CHUNK_DELIMITER = "\n\n---\n\n"


def document_label(name: str) -> str:
    return f"--- DOCUMENT: {name} ---"


def source_label(name: str) -> str:
    return f"[Source: {name}]"


def build_full_context(documents: Iterable[Document]) -> str:
    """Every document's full text, verbatim, each under its source label."""

    return "\n".join(
        f"{document_label(doc.name)}\n{doc.full_text}\n"
        for doc in documents
    )


def build_retrieved_context(scored_chunks: Iterable[ScoredChunk]) -> str:
    """Top-scored chunks in rank order, labelled and delimited."""

    return CHUNK_DELIMITER.join(
        f"{source_label(chunk.source_name)}\n{chunk.text}"
        for chunk in scored_chunks
    )


def build_final_turn(context: str, question: str) -> str:
    """
    Content of the last user turn.

    With context:    [NEW CONTEXT]...[/NEW CONTEXT] + question
    Without context: history-only marker + question
    """

    if context:
        return (
            f"{NEW_CONTEXT_OPEN}\n{context}\n{NEW_CONTEXT_CLOSE}\n"
            f"{QUESTION_PREFIX} {question}"
        )

    return f"{HISTORY_ONLY_MARKER}\n{QUESTION_PREFIX} {question}"


def build_turns(payload: ContextPayload) -> List[Tuple[str, str]]:
    """
    Ordered (role, text) turns for the generation service.

    Prior turns come first; the final user turn carries context + question.
    """

    turns = [(turn.role, turn.text) for turn in payload.prior_turns]

    turns.append(
        (USER_ROLE, build_final_turn(payload.context, payload.question))
    )

    return turns
