# support_rag/workflow/context_assembler.py

"""
Per-query context assembly.

    documents + history + query
        → strategy selection (FULL / RETRIEVE)
        → guardrail (no documents, no relevant context)
        → history windowing
        → ContextPayload
        → generation service
        → answer text

Everything up to the payload is pure. The generation call is the only
side effect, and its failures are turned into fixed apology strings.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Union

from support_rag.config import AssistantConfig
from support_rag.exceptions import GenerationConfigError
from support_rag.memory.documents import (
    Chunk,
    Document,
    flatten_chunks,
    total_characters,
)
from support_rag.memory.scorer import LexicalScorer, Scorer, get_scorer
from support_rag.prompts.prompt_builder import (
    build_full_context,
    build_retrieved_context,
    build_turns,
)
from support_rag.prompts.system_prompts import (
    CONFIGURATION_ERROR_MESSAGE,
    EMPTY_CORPUS_MESSAGE,
    EMPTY_RESPONSE_MESSAGE,
    NOT_FOUND_MESSAGE,
    SUPPORT_SYSTEM_INSTRUCTION,
    TRANSIENT_ERROR_MESSAGE,
)
from support_rag.workflow.payload import (
    MODEL_ROLE,
    ContextPayload,
    ConversationTurn,
    GuardrailKind,
    GuardrailResponse,
    Strategy,
)

logger = logging.getLogger(__name__)


def window_history(
    history: Sequence[ConversationTurn],
    window: int,
) -> List[ConversationTurn]:
    """
    Last `window` turns, with leading model turns dropped.

    The trim runs after slicing because the slice itself can start on a
    model turn.
    """

    if window <= 0 or not history:
        return []

    windowed = list(history[-window:])

    while windowed and windowed[0].role == MODEL_ROLE:
        windowed.pop(0)

    return windowed


def _unique_names(names) -> tuple:
    return tuple(dict.fromkeys(names))


class ContextAssembler:
    """
    Builds the generation request for one query and runs it.

    Holds configuration only; no per-query state survives a call, so one
    instance can serve concurrent chat sessions.
    """

    def __init__(
        self,
        config: Optional[AssistantConfig] = None,
        generation_client=None,
        scorer: Optional[Scorer] = None,
        system_instruction: str = SUPPORT_SYSTEM_INSTRUCTION,
    ):
        self.config = config or AssistantConfig()

        self.scorer = scorer or get_scorer(
            self.config.scoring_strategy,
            top_k=self.config.top_k,
            min_token_length=self.config.min_token_length,
            stop_words=self.config.stop_words,
        )

        # presence check for the full-context guardrail
        self._overlap_scorer = LexicalScorer(
            top_k=1,
            min_token_length=self.config.min_token_length,
            stop_words=self.config.stop_words,
        )

        self.generation_client = generation_client
        self.system_instruction = system_instruction

    # ============================================================
    # PURE ASSEMBLY
    # ============================================================

    def select_strategy(self, documents: Sequence[Document]) -> Strategy:

        if total_characters(documents) < self.config.full_context_threshold:
            return Strategy.FULL

        return Strategy.RETRIEVE

    def _has_lexical_overlap(
        self,
        query: str,
        documents: Sequence[Document],
    ) -> bool:

        units = [
            Chunk(text=doc.full_text, document_id=doc.id, source_name=doc.name)
            for doc in documents
        ]

        return bool(self._overlap_scorer.score(query, units))

    def build(
        self,
        query: str,
        documents: Sequence[Document],
        history: Sequence[ConversationTurn] = (),
    ) -> Union[ContextPayload, GuardrailResponse]:
        """
        Assemble the request for one query without calling the model.

        Returns a GuardrailResponse when the model must not be called.
        """

        documents = list(documents)
        history = list(history or ())

        if not documents:
            logger.info("Guardrail: empty corpus")
            return GuardrailResponse(
                kind=GuardrailKind.EMPTY_CORPUS,
                message=EMPTY_CORPUS_MESSAGE,
            )

        strategy = self.select_strategy(documents)

        if strategy is Strategy.RETRIEVE:

            scored = self.scorer.score(query, flatten_chunks(documents))

            if not scored and not history:
                logger.info(
                    "Guardrail: no relevant context",
                    extra={"strategy": strategy.value},
                )
                return GuardrailResponse(
                    kind=GuardrailKind.NO_RELEVANT_CONTEXT,
                    message=NOT_FOUND_MESSAGE,
                    strategy=strategy,
                )

            context = build_retrieved_context(scored)
            sources_used = len(scored)
            source_names = _unique_names(c.source_name for c in scored)

        else:

            if (
                self.config.guard_full_context
                and not history
                and not self._has_lexical_overlap(query, documents)
            ):
                logger.info(
                    "Guardrail: no relevant context",
                    extra={"strategy": strategy.value},
                )
                return GuardrailResponse(
                    kind=GuardrailKind.NO_RELEVANT_CONTEXT,
                    message=NOT_FOUND_MESSAGE,
                    strategy=strategy,
                )

            context = build_full_context(documents)
            sources_used = len(documents)
            source_names = _unique_names(doc.name for doc in documents)

        prior_turns = window_history(history, self.config.history_window)

        logger.info(
            "Context assembled",
            extra={
                "strategy": strategy.value,
                "documents": len(documents),
                "sources_used": sources_used,
                "context_length": len(context),
                "history_turns": len(history),
                "prior_turns": len(prior_turns),
            },
        )

        return ContextPayload(
            system_instruction=self.system_instruction,
            prior_turns=tuple(prior_turns),
            context=context,
            question=query,
            strategy=strategy,
            sources_used=sources_used,
            source_names=source_names,
        )

    # ============================================================
    # GENERATION
    # ============================================================

    def answer(
        self,
        query: str,
        documents: Sequence[Document],
        history: Sequence[ConversationTurn] = (),
    ) -> Dict:
        """
        Answer a query. Never raises for generation failures.

        Returns a dict with keys: answer, refused, failed, strategy,
        sources_used, reasoning. `refused` marks a guardrail reply; `failed`
        marks a generation failure answered with an apology.
        """

        start_time = time.time()

        result = self.build(query, documents, history)

        if isinstance(result, GuardrailResponse):
            return {
                "answer": result.message,
                "refused": True,
                "failed": False,
                "strategy": result.strategy.value if result.strategy else None,
                "sources_used": 0,
                "reasoning": result.kind.value,
            }

        response = {
            "answer": None,
            "refused": False,
            "failed": False,
            "strategy": result.strategy.value,
            "sources_used": result.sources_used,
            "reasoning": None,
        }

        if self.generation_client is None:
            logger.error("Generation client not configured")
            response.update(
                answer=CONFIGURATION_ERROR_MESSAGE,
                failed=True,
                reasoning="LLM generation failed: no generation client",
            )
            return response

        try:
            text = self.generation_client.generate(
                result.system_instruction,
                build_turns(result),
                self.config.temperature,
            )

        except GenerationConfigError as e:
            logger.error(
                "LLM generation failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            response.update(
                answer=CONFIGURATION_ERROR_MESSAGE,
                failed=True,
                reasoning=f"LLM generation failed: {e}",
            )
            return response

        except Exception as e:
            logger.error(
                "LLM generation failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            response.update(
                answer=TRANSIENT_ERROR_MESSAGE,
                failed=True,
                reasoning=f"LLM generation failed: {e}",
            )
            return response

        response["answer"] = text or EMPTY_RESPONSE_MESSAGE

        logger.info(
            "Answer generated",
            extra={
                "strategy": result.strategy.value,
                "sources_used": result.sources_used,
                "latency_seconds": round(time.time() - start_time, 3),
            },
        )

        return response

    def assemble(
        self,
        query: str,
        documents: Sequence[Document],
        history: Sequence[ConversationTurn] = (),
    ) -> str:
        """Public surface: answer text only."""

        return self.answer(query, documents, history)["answer"]
