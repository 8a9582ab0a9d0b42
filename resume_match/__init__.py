"""
Resume / Job-Description Matching Engine

Scores a resume against a job description:
1. Keyword coverage (matched / missing keywords)
2. Sentence-level semantic similarity (top matching pairs)
3. Optional AI enrichment (summary, missing skills, bullet improvements)

Usage:
    from resume_match import analyze

    result = analyze(resume_text, job_description)
    print(f"Match: {result.match_score}%")
"""

__version__ = "1.0.0"

from .analyzer import MatchingEngine, analyze
from .models import AnalysisOptions, AnalysisResult, RawInput
from .normalizer import normalize

__all__ = [
    "MatchingEngine",
    "analyze",
    "normalize",
    "AnalysisOptions",
    "AnalysisResult",
    "RawInput",
]
