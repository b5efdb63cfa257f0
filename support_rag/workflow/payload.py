# support_rag/workflow/payload.py

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


USER_ROLE = "user"
MODEL_ROLE = "model"


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    text: str
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.role not in (USER_ROLE, MODEL_ROLE):
            raise ValueError(f"Invalid conversation role: {self.role}")


class Strategy(str, Enum):
    FULL = "full"
    RETRIEVE = "retrieve"


class GuardrailKind(str, Enum):
    EMPTY_CORPUS = "empty_corpus"
    NO_RELEVANT_CONTEXT = "no_relevant_context"


@dataclass(frozen=True)
class GuardrailResponse:
    """Short-circuit result: the generation service must not be called."""

    kind: GuardrailKind
    message: str
    strategy: Optional[Strategy] = None


@dataclass(frozen=True)
class ContextPayload:
    """
    Everything the generation service needs for one query.

    Invariant: prior_turns never begins with a model turn.
    """

    system_instruction: str
    prior_turns: Tuple[ConversationTurn, ...]
    context: str
    question: str
    strategy: Strategy = Strategy.FULL
    sources_used: int = 0
    source_names: Tuple[str, ...] = field(default_factory=tuple)
