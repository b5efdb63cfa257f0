# support_rag/config.py
"""
Configuration for the support-widget RAG assistant.

This file centralizes all tunable parameters for the retrieval pipeline.
Module constants are the defaults; AssistantConfig is the object that is
actually passed around (built once at process start via from_env()).
"""

import os
from typing import FrozenSet, Optional

from pydantic import BaseModel, Field, model_validator, validator


# ========== DOCUMENT PROCESSING ==========

# Chunk configuration (characters, not tokens)
CHUNK_SIZE = 1500  # roughly 300-400 tokens
CHUNK_OVERLAP = 200  # shared context between neighbouring chunks

# File upload limits
MAX_FILE_SIZE_MB = 10
ALLOWED_FILE_EXTENSIONS = [".pdf", ".txt", ".md", ".json", ".csv"]
MAX_DOCUMENT_CHARACTERS = 2_000_000


# ========== RETRIEVAL CONFIGURATION ==========

# Below this total corpus size the whole corpus is sent as context
FULL_CONTEXT_THRESHOLD = 150_000

# Retrieval depth
TOP_K = 8

# "lexical" or "tfidf"
SCORING_STRATEGY = "lexical"

# Tokens of this length or shorter are ignored when scoring
MIN_TOKEN_LENGTH = 2

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can",
    "had", "her", "was", "one", "our", "out", "has", "have", "with", "this",
    "that", "from", "they", "will", "would", "there", "their", "what",
    "when", "where", "which", "who", "whom", "why", "how", "does", "did",
    "about", "into", "your", "yours", "its", "also", "just", "than", "then",
    "them", "these", "those", "been", "being", "were", "is", "a", "an",
    "or", "nor", "so", "yet", "tell", "please",
})

# Apply the no-match refusal even when the whole corpus fits in context
GUARD_FULL_CONTEXT = True


# ========== CONVERSATION ==========

HISTORY_WINDOW = 10  # turns of prior conversation forwarded to the model


# ========== LLM CONFIGURATION ==========

LLM_PROVIDER = "gemini"  # "gemini" or "openai"

GEMINI_MODEL = "gemini-2.5-flash"
OPENAI_MODEL = "gpt-4o-mini"

# Low temperature for factual answers
LLM_TEMPERATURE = 0.3


# ========== DESIGN TRADE-OFFS (DOCUMENTED) ==========

"""
TRADE-OFF DECISIONS:

1. FULL_CONTEXT_THRESHOLD = 150k characters:
   - Long-context models answer better from the complete corpus
   - Past this size cost and latency grow faster than quality
   - Tunable knob, not a protocol constant

2. CHUNK_SIZE = 1500 / CHUNK_OVERLAP = 200:
   - Smaller chunks → more precise keyword hits, less surrounding context
   - Overlap keeps sentences near a boundary whole in at least one chunk

3. TOP_K = 8:
   - Only used in retrieval mode, where the corpus is already large
   - 8 x 1500 characters keeps the prompt around 3k tokens

4. HISTORY_WINDOW = 10:
   - Earlier iterations used 6; 10 keeps follow-up questions grounded
     without letting old turns dominate the prompt
"""


SCORING_STRATEGIES = ("lexical", "tfidf")
LLM_PROVIDERS = ("gemini", "openai")


class AssistantConfig(BaseModel):
    """Explicit runtime configuration handed to the assembler and LLM factory."""

    chunk_size: int = Field(CHUNK_SIZE, gt=0)
    chunk_overlap: int = Field(CHUNK_OVERLAP, ge=0)

    full_context_threshold: int = Field(FULL_CONTEXT_THRESHOLD, ge=0)
    top_k: int = Field(TOP_K, gt=0)
    scoring_strategy: str = SCORING_STRATEGY
    min_token_length: int = Field(MIN_TOKEN_LENGTH, ge=0)
    stop_words: FrozenSet[str] = STOP_WORDS
    guard_full_context: bool = GUARD_FULL_CONTEXT

    history_window: int = Field(HISTORY_WINDOW, ge=0)

    llm_provider: str = LLM_PROVIDER
    gemini_model: str = GEMINI_MODEL
    openai_model: str = OPENAI_MODEL
    temperature: float = Field(LLM_TEMPERATURE, ge=0.0, le=2.0)

    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_overlap(self):
        # also checks the default overlap against an explicit chunk_size
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be smaller than chunk_size "
                f"(overlap={self.chunk_overlap}, size={self.chunk_size})"
            )
        return self

    @validator("scoring_strategy")
    def validate_scoring_strategy(cls, v):
        v = v.strip().lower()
        if v not in SCORING_STRATEGIES:
            raise ValueError(f"Unknown scoring strategy: {v}")
        return v

    @validator("llm_provider")
    def validate_llm_provider(cls, v):
        v = v.strip().lower()
        if v not in LLM_PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {v}")
        return v

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        """
        Build configuration from environment variables.

        This is the single place credentials are read.
        """

        values = {
            "llm_provider": os.getenv("LLM_PROVIDER", LLM_PROVIDER),
            "scoring_strategy": os.getenv("SCORING_STRATEGY", SCORING_STRATEGY),
            "gemini_api_key": os.getenv("GEMINI_API_KEY") or None,
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }

        for key, env_name in (
            ("full_context_threshold", "FULL_CONTEXT_THRESHOLD"),
            ("history_window", "HISTORY_WINDOW"),
            ("top_k", "TOP_K"),
        ):
            raw = os.getenv(env_name)
            if raw:
                values[key] = int(raw)

        return cls(**values)
