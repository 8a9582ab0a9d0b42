"""
Semantic Similarity Ranker

Splits both texts into sentences, scores every job sentence against every
resume sentence, and keeps the best resume sentence per job sentence.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .config import BULLET_MARKERS, TOP_N_MATCHES
from .similarity import (
    SimilarityProvider,
    TfidfSimilarity,
    TokenOverlapSimilarity,
    clip_similarity,
)

logger = logging.getLogger(__name__)

# Sentence ends: line breaks, terminal punctuation before whitespace (not
# after "e.g." or "i.e."), and "word.Capital" with no space between
_SENTENCE_BOUNDARY = re.compile(
    r"(?:\r?\n)+"
    r"|(?<!\be\.g\.)(?<!\bi\.e\.)(?<=[.!?])\s+"
    r"|(?<=[a-z0-9][.!?])(?=[A-Z])"
)
_WHITESPACE = re.compile(r"\s+")


class SentenceSource(str, Enum):
    JOB = "job"
    RESUME = "resume"


@dataclass(frozen=True)
class Sentence:
    text: str
    source: SentenceSource
    index: int


@dataclass(frozen=True)
class SimilarityPair:
    job_sentence: Sentence
    resume_sentence: Sentence
    similarity: float


@dataclass(frozen=True)
class RankResult:
    pairs: Tuple[SimilarityPair, ...]
    semantic_score: float
    degraded: bool = False


def split_sentences(text: Optional[str], source: SentenceSource) -> List[Sentence]:
    """
    Segment text into sentences.

    Splits on line breaks and on '.', '!' or '?' followed by whitespace or
    a capital letter. Collapses whitespace, strips leading bullet markers and
    drops empty segments. Order of the source text is kept in Sentence.index.
    """
    if not text:
        return []

    sentences = []
    for segment in _SENTENCE_BOUNDARY.split(text):
        cleaned = _WHITESPACE.sub(" ", segment).strip().lstrip(BULLET_MARKERS).strip()
        if cleaned:
            sentences.append(Sentence(text=cleaned, source=source, index=len(sentences)))
    return sentences


class SemanticRanker:
    """
    Ranks job/resume sentence pairs with a pluggable similarity provider.

    When the provider fails, the ranker recomputes with the token-overlap
    fallback and marks the result as degraded.
    """

    def __init__(
        self,
        provider: Optional[SimilarityProvider] = None,
        fallback: Optional[SimilarityProvider] = None,
    ):
        self.provider = provider or TfidfSimilarity()
        self.fallback = fallback or TokenOverlapSimilarity()

    def _score(self, job_texts: List[str], resume_texts: List[str]) -> Tuple[list, bool]:
        try:
            return self.provider.similarity_matrix(job_texts, resume_texts), False
        except Exception as e:  # noqa: BLE001
            logger.warning(
                f"{self.provider.__class__.__name__} failed ({e}), "
                f"falling back to {self.fallback.__class__.__name__}"
            )
            return self.fallback.similarity_matrix(job_texts, resume_texts), True

    def rank(self, job_text: str, resume_text: str, top_n: int = TOP_N_MATCHES) -> RankResult:
        """
        Find the top-N most similar job/resume sentence pairs.

        Args:
            job_text: Job description text
            resume_text: Resume text
            top_n: Maximum number of pairs to return

        Returns:
            RankResult with pairs sorted by similarity (descending, ties by
            job-sentence order) and semantic_score = 100 * mean similarity
            of the returned pairs
        """
        if top_n < 1:
            raise ValueError("top_n must be at least 1")

        job_sentences = split_sentences(job_text, SentenceSource.JOB)
        resume_sentences = split_sentences(resume_text, SentenceSource.RESUME)
        if not job_sentences or not resume_sentences:
            logger.info("No sentences to compare, semantic score = 0")
            return RankResult(pairs=(), semantic_score=0.0)

        matrix, degraded = self._score(
            [s.text for s in job_sentences],
            [s.text for s in resume_sentences],
        )

        best_pairs = []
        for job_sentence, row in zip(job_sentences, matrix):
            # max() keeps the first resume sentence on ties
            best_col = max(range(len(resume_sentences)), key=lambda col: row[col])
            best_pairs.append(SimilarityPair(
                job_sentence=job_sentence,
                resume_sentence=resume_sentences[best_col],
                similarity=clip_similarity(row[best_col]),
            ))

        best_pairs.sort(key=lambda p: (-p.similarity, p.job_sentence.index))
        top_pairs = tuple(best_pairs[:top_n])
        semantic_score = 100 * sum(p.similarity for p in top_pairs) / len(top_pairs)

        logger.debug(
            f"Ranked {len(job_sentences)} job x {len(resume_sentences)} resume sentences"
        )
        logger.info(f"Semantic score: {semantic_score:.2f}%" + (" (degraded)" if degraded else ""))
        return RankResult(pairs=top_pairs, semantic_score=semantic_score, degraded=degraded)
