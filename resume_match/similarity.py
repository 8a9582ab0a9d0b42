"""
Sentence Similarity Providers

Every provider scores a batch of job sentences against a batch of resume
sentences and returns a matrix of values in [0, 1]:

- TokenOverlapSimilarity: Jaccard overlap of normalized keywords (offline fallback)
- TfidfSimilarity: TF-IDF + cosine similarity via scikit-learn (offline)
- OpenAIEmbeddingSimilarity: cosine similarity of OpenAI embeddings (network)
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from .config import EMBEDDING_CONFIG, TIMEOUTS
from .errors import SimilarityUnavailable
from .normalizer import DEFAULT_NORMALIZER, TextNormalizer

logger = logging.getLogger(__name__)

Matrix = List[List[float]]


def clip_similarity(value: float) -> float:
    """Clamp a raw similarity into [0, 1]."""
    return min(1.0, max(0.0, float(value)))


def _zeros(rows: int, cols: int) -> Matrix:
    return [[0.0] * cols for _ in range(rows)]


class SimilarityProvider(ABC):
    """Abstract base class for sentence similarity providers."""

    @abstractmethod
    def similarity_matrix(
        self,
        job_sentences: Sequence[str],
        resume_sentences: Sequence[str],
    ) -> Matrix:
        """
        Score every job sentence against every resume sentence.

        Args:
            job_sentences: Sentence texts from the job description
            resume_sentences: Sentence texts from the resume

        Returns:
            Matrix with one row per job sentence and one column per
            resume sentence, values in [0, 1]

        Raises:
            SimilarityUnavailable: If the provider cannot produce scores
        """
        raise NotImplementedError


class TokenOverlapSimilarity(SimilarityProvider):
    """Jaccard similarity of sentence keyword sets. Never calls out."""

    def __init__(self, normalizer: TextNormalizer = DEFAULT_NORMALIZER):
        self.normalizer = normalizer

    def similarity_matrix(self, job_sentences, resume_sentences) -> Matrix:
        job_sets = [set(self.normalizer.tokens(s)) for s in job_sentences]
        resume_sets = [set(self.normalizer.tokens(s)) for s in resume_sentences]

        matrix = []
        for job_keywords in job_sets:
            row = []
            for resume_keywords in resume_sets:
                union = job_keywords | resume_keywords
                if union:
                    row.append(len(job_keywords & resume_keywords) / len(union))
                else:
                    row.append(0.0)
            matrix.append(row)
        return matrix


class TfidfSimilarity(SimilarityProvider):
    """
    TF-IDF vectors fitted on both sentence lists, compared by cosine.

    With a normalizer, its keywords (stop words and aliases applied) are the
    vocabulary; otherwise scikit-learn's default tokenizer is used.
    """

    def __init__(self, normalizer: Optional[TextNormalizer] = None):
        self.normalizer = normalizer

    def _vectorizer(self) -> TfidfVectorizer:
        if self.normalizer is None:
            return TfidfVectorizer()
        return TfidfVectorizer(tokenizer=self.normalizer.tokens, lowercase=False, token_pattern=None)

    def similarity_matrix(self, job_sentences, resume_sentences) -> Matrix:
        if not job_sentences or not resume_sentences:
            return _zeros(len(job_sentences), len(resume_sentences))

        vectorizer = self._vectorizer()
        try:
            vectors = vectorizer.fit_transform(list(job_sentences) + list(resume_sentences))
        except ValueError:
            # Empty vocabulary: nothing to compare
            logger.debug("TF-IDF vocabulary is empty, similarity = 0")
            return _zeros(len(job_sentences), len(resume_sentences))

        split = len(job_sentences)
        scores = cosine_similarity(vectors[:split], vectors[split:])
        return [[clip_similarity(v) for v in row] for row in scores.tolist()]


class OpenAIEmbeddingSimilarity(SimilarityProvider):
    """Cosine similarity of OpenAI embeddings, with an explicit request timeout."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = EMBEDDING_CONFIG["model"],
        timeout: float = TIMEOUTS["similarity"],
        batch_size: int = EMBEDDING_CONFIG["batch_size"],
        client=None,
    ):
        if client is None:
            if not api_key:
                raise ValueError("OPENAI_API_KEY not provided")
            from openai import OpenAI

            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.client = client
        self.model = model
        self.timeout = timeout
        self.batch_size = batch_size

    def _embed(self, texts: Sequence[str]) -> Matrix:
        embeddings = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            response = self.client.embeddings.create(
                model=self.model,
                input=batch,
                timeout=self.timeout,
            )
            embeddings.extend(item.embedding for item in response.data)
        if len(embeddings) != len(texts):
            raise ValueError(f"Expected {len(texts)} embeddings, got {len(embeddings)}")
        return embeddings

    def similarity_matrix(self, job_sentences, resume_sentences) -> Matrix:
        if not job_sentences or not resume_sentences:
            return _zeros(len(job_sentences), len(resume_sentences))

        try:
            vectors = self._embed(list(job_sentences) + list(resume_sentences))
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Embedding request failed: {e}")
            raise SimilarityUnavailable(f"Embedding provider unavailable: {e}") from e

        split = len(job_sentences)
        scores = cosine_similarity(vectors[:split], vectors[split:])
        return [[clip_similarity(v) for v in row] for row in scores.tolist()]


def get_similarity_provider(
    settings,
    normalizer: TextNormalizer = DEFAULT_NORMALIZER,
) -> SimilarityProvider:
    """
    Return a SimilarityProvider based on settings.

    Resolution order:
    1. settings.similarity_provider ("openai", "tfidf" or "overlap")
    2. OpenAI embeddings when an API key is configured
    3. TF-IDF otherwise

    An OpenAI provider that cannot be initialised falls back to TF-IDF.
    """
    preferred = (settings.similarity_provider or "").lower()
    if preferred == "overlap":
        return TokenOverlapSimilarity(normalizer)
    if preferred == "tfidf":
        return TfidfSimilarity(normalizer)
    if preferred and preferred != "openai":
        logger.warning(f"Unknown similarity provider '{preferred}', using automatic detection")

    if preferred == "openai" or settings.openai_api_key:
        try:
            return OpenAIEmbeddingSimilarity(
                settings.openai_api_key,
                model=settings.embedding_model,
                timeout=settings.similarity_timeout_seconds,
            )
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Failed to initialise OpenAI embeddings: {e}")

    logger.info("Using TF-IDF sentence similarity")
    return TfidfSimilarity(normalizer)
