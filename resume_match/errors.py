"""
Exceptions raised by the matching engine.

Only InvalidInputError aborts an analysis. The others mark conditions the
engine degrades around.
"""


class ResumeMatchError(Exception):
    """Base class for all matching-engine errors."""


class EmptyInputError(ResumeMatchError):
    """Text produced no keywords after normalization."""


class InvalidInputError(ResumeMatchError):
    """Resume text or job description is missing or blank."""


class SimilarityUnavailable(ResumeMatchError):
    """The configured similarity provider could not score the sentences."""


class EnrichmentUnavailable(ResumeMatchError):
    """The text-generation provider timed out or returned unusable output."""
