# support_rag/memory/scorer.py

"""
Keyword relevance scoring for document chunks.

Architecture contract:
documents → chunker → scorer → context assembler

Two interchangeable strategies share one interface:

- LexicalScorer: substring presence + frequency boost per query token
- TfidfScorer: cosine similarity between idf-weighted term vectors

Scoring is a pure function of (query, chunks). No I/O, no shared state,
so it is safe to call concurrently from many chat sessions.
"""

import logging
import math
import unicodedata
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence

import numpy as np

from support_rag.config import MIN_TOKEN_LENGTH, STOP_WORDS, TOP_K
from support_rag.memory.documents import Chunk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredChunk:
    text: str
    source_name: str
    score: float


def _strip_punctuation(text: str) -> str:
    return "".join(
        ch for ch in text
        if not unicodedata.category(ch).startswith(("P", "S"))
    )


def tokenize(
    text: str,
    min_length: int = MIN_TOKEN_LENGTH,
    stop_words: FrozenSet[str] = STOP_WORDS,
) -> List[str]:
    """
    Lowercase, strip punctuation, split on whitespace.

    Tokens of `min_length` characters or fewer and stop words are dropped.
    An empty result means the text is not searchable.
    """

    if not text:
        return []

    words = _strip_punctuation(text.lower()).split()

    return [
        w for w in words
        if len(w) > min_length and w not in stop_words
    ]


class Scorer(ABC):
    """Ranks chunks against a query; subclasses supply the raw signal."""

    name = "base"

    def __init__(
        self,
        top_k: int = TOP_K,
        min_token_length: int = MIN_TOKEN_LENGTH,
        stop_words: FrozenSet[str] = STOP_WORDS,
    ):
        if top_k <= 0:
            raise ValueError(f"Invalid top_k: {top_k}")

        self.top_k = top_k
        self.min_token_length = min_token_length
        self.stop_words = stop_words

    def tokenize(self, text: str) -> List[str]:
        return tokenize(
            text,
            min_length=self.min_token_length,
            stop_words=self.stop_words,
        )

    @abstractmethod
    def raw_scores(
        self,
        query_tokens: List[str],
        texts: Sequence[str],
    ) -> List[float]:
        """One score per text, same order as `texts`."""

    def score(
        self,
        query: str,
        chunks: Sequence[Chunk],
    ) -> List[ScoredChunk]:
        """
        Score chunks against a query.

        Returns at most top_k chunks, best first. Chunks scoring zero are
        excluded; equal scores keep their input order.
        """

        query_tokens = self.tokenize(query)

        if not query_tokens or not chunks:
            logger.info(
                "Scoring skipped",
                extra={
                    "strategy": self.name,
                    "query_tokens": len(query_tokens),
                    "chunks": len(chunks),
                },
            )
            return []

        scores = self.raw_scores(query_tokens, [c.text for c in chunks])

        ranked = sorted(
            (
                ScoredChunk(
                    text=chunk.text,
                    source_name=chunk.source_name,
                    score=float(s),
                )
                for chunk, s in zip(chunks, scores)
                if s > 0
            ),
            key=lambda sc: sc.score,
            reverse=True,
        )

        results = ranked[: self.top_k]

        logger.info(
            "Scoring completed",
            extra={
                "strategy": self.name,
                "query_tokens": len(query_tokens),
                "chunks": len(chunks),
                "matched": len(ranked),
                "returned": len(results),
                "top_score": results[0].score if results else None,
            },
        )

        return results


class LexicalScorer(Scorer):
    """
    +1 per query token found in the chunk, plus 0.5 per occurrence.

    Matching is case-insensitive substring containment.
    """

    name = "lexical"

    PRESENCE_POINTS = 1.0
    FREQUENCY_BOOST = 0.5

    def raw_scores(self, query_tokens, texts):

        scores = []

        for text in texts:

            haystack = text.lower()

            total = 0.0

            for token in query_tokens:

                occurrences = haystack.count(token)

                if occurrences:
                    total += self.PRESENCE_POINTS
                    total += self.FREQUENCY_BOOST * occurrences

            scores.append(total)

        return scores


class TfidfScorer(Scorer):
    """
    Cosine similarity over idf-weighted term frequencies.

    idf(t) = log10(N / (1 + df(t))) across the chunks being scored.
    """

    name = "tfidf"

    def raw_scores(self, query_tokens, texts):

        chunk_counts = [Counter(self.tokenize(t)) for t in texts]

        vocabulary: Dict[str, int] = {}
        for counts in chunk_counts:
            for term in counts:
                vocabulary.setdefault(term, len(vocabulary))

        n_chunks = len(texts)

        if not vocabulary:
            return [0.0] * n_chunks

        tf = np.zeros((n_chunks, len(vocabulary)), dtype=np.float64)

        for row, counts in enumerate(chunk_counts):
            for term, count in counts.items():
                tf[row, vocabulary[term]] = count

        df = np.count_nonzero(tf, axis=0)
        idf = np.log10(n_chunks / (1.0 + df))

        weighted = tf * idf

        query_counts = Counter(query_tokens)
        query_vec = np.zeros(len(vocabulary), dtype=np.float64)

        # terms absent from every chunk still count toward the query norm
        unseen_sq = 0.0
        unseen_idf = math.log10(n_chunks)

        for term, count in query_counts.items():
            idx = vocabulary.get(term)
            if idx is None:
                unseen_sq += (count * unseen_idf) ** 2
            else:
                query_vec[idx] = count * idf[idx]

        query_norm = math.sqrt(float(query_vec @ query_vec) + unseen_sq)

        if query_norm == 0.0:
            return [0.0] * n_chunks

        chunk_norms = np.linalg.norm(weighted, axis=1)
        dots = weighted @ query_vec

        scores = []
        for dot, norm in zip(dots, chunk_norms):
            if norm == 0.0:
                scores.append(0.0)
            else:
                scores.append(float(dot / (norm * query_norm)))

        return scores


_SCORERS = {
    LexicalScorer.name: LexicalScorer,
    TfidfScorer.name: TfidfScorer,
}


def get_scorer(
    strategy: str,
    top_k: int = TOP_K,
    min_token_length: int = MIN_TOKEN_LENGTH,
    stop_words: Optional[FrozenSet[str]] = None,
) -> Scorer:
    """Scorer factory keyed by strategy name ("lexical" or "tfidf")."""

    key = (strategy or "").strip().lower()

    if key not in _SCORERS:
        raise ValueError(f"Unknown scoring strategy: {strategy}")

    return _SCORERS[key](
        top_k=top_k,
        min_token_length=min_token_length,
        stop_words=STOP_WORDS if stop_words is None else stop_words,
    )
