"""
Keyword Matcher

Compares job-description keywords against resume keywords. Pure functions:
same inputs produce same outputs, no I/O.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import EmptyInputError
from .normalizer import DEFAULT_NORMALIZER, TextNormalizer, TokenSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordMatch:
    """Partition of the job keywords into matched and missing."""

    matched: Tuple[str, ...]
    missing: Tuple[str, ...]
    score: float


def match(job_tokens: Sequence[str], resume_tokens: Sequence[str]) -> KeywordMatch:
    """
    Calculate keyword coverage of the job description (0-100).

    Formula:
    - matched = job ∩ resume
    - missing = job - matched
    - score = (|matched| / |job|) * 100, or 0 when the job has no keywords

    Args:
        job_tokens: Normalized job-description keywords
        resume_tokens: Normalized resume keywords

    Returns:
        KeywordMatch with both lists in job-description order
    """
    resume_set = set(resume_tokens)
    # dict.fromkeys keeps order and drops duplicates from unnormalized input
    job_keywords = list(dict.fromkeys(job_tokens))

    matched = tuple(t for t in job_keywords if t in resume_set)
    missing = tuple(t for t in job_keywords if t not in resume_set)

    if job_keywords:
        score = (len(matched) / len(job_keywords)) * 100
    else:
        score = 0.0
        logger.debug("No job keywords, keyword score = 0")

    logger.info(f"Keyword score: {len(matched)}/{len(job_keywords)} = {score:.2f}%")
    return KeywordMatch(matched=matched, missing=missing, score=score)


def safe_normalize(
    text: str,
    normalizer: TextNormalizer = DEFAULT_NORMALIZER,
    min_length: Optional[int] = None,
) -> TokenSet:
    """Normalize text, treating EmptyInputError as "no keywords"."""
    try:
        return normalizer.normalize(text, min_length)
    except EmptyInputError:
        logger.debug("Text produced no keywords")
        return ()


def match_texts(
    job_text: str,
    resume_text: str,
    normalizer: TextNormalizer = DEFAULT_NORMALIZER,
    min_length: Optional[int] = None,
) -> Tuple[TokenSet, KeywordMatch]:
    """
    Normalize both texts and match them.

    Returns:
        (job_tokens, KeywordMatch)
    """
    job_tokens = safe_normalize(job_text, normalizer, min_length)
    resume_tokens = safe_normalize(resume_text, normalizer, min_length)
    logger.debug(f"Job: {len(job_tokens)} keywords, resume: {len(resume_tokens)} keywords")
    return job_tokens, match(job_tokens, resume_tokens)
