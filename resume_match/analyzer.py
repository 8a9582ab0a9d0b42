"""
Analysis Orchestrator

Runs the complete analysis for one resume and one job description:
1. Normalize both texts and match keywords
2. Rank job/resume sentence pairs by similarity
3. Optionally ask a text-generation provider for a summary and suggestions
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import TIMEOUTS
from .enrichment import Enrichment, TextGenerator, get_text_generator
from .errors import EnrichmentUnavailable, InvalidInputError
from .keywords import match_texts
from .models import AnalysisOptions, AnalysisResult, RawInput, TopMatch
from .normalizer import DEFAULT_NORMALIZER, TextNormalizer
from .ranker import SemanticRanker
from .similarity import TfidfSimilarity, TokenOverlapSimilarity, get_similarity_provider

logger = logging.getLogger(__name__)


def validate_input(raw: RawInput) -> None:
    """Raise InvalidInputError when either text is empty or whitespace-only."""
    if not raw.resume_text or not raw.resume_text.strip():
        raise InvalidInputError("Resume text is empty.")
    if not raw.job_description or not raw.job_description.strip():
        raise InvalidInputError("Job description is empty.")


class MatchingEngine:
    """
    Resume / job-description matching engine.

    All collaborators are injected at construction and never mutated, so a
    single engine can serve concurrent analyses.
    """

    def __init__(
        self,
        normalizer: Optional[TextNormalizer] = None,
        ranker: Optional[SemanticRanker] = None,
        text_generator: Optional[TextGenerator] = None,
        enrichment_timeout: float = TIMEOUTS["enrichment"],
    ):
        self.normalizer = normalizer or DEFAULT_NORMALIZER
        self.ranker = ranker or SemanticRanker(
            TfidfSimilarity(self.normalizer),
            fallback=TokenOverlapSimilarity(self.normalizer),
        )
        self.text_generator = text_generator
        self.enrichment_timeout = enrichment_timeout

    @classmethod
    def from_settings(cls, settings=None, normalizer: Optional[TextNormalizer] = None) -> "MatchingEngine":
        """Build an engine with providers resolved from settings, sharing one normalizer."""
        if settings is None:
            from .settings import get_settings
            settings = get_settings()
        normalizer = normalizer or DEFAULT_NORMALIZER
        return cls(
            normalizer=normalizer,
            ranker=SemanticRanker(
                get_similarity_provider(settings, normalizer),
                fallback=TokenOverlapSimilarity(normalizer),
            ),
            text_generator=get_text_generator(settings),
            enrichment_timeout=settings.enrichment_timeout_seconds,
        )

    def _compute(self, raw: RawInput, options: AnalysisOptions) -> AnalysisResult:
        validate_input(raw)

        logger.info("Step 1: Matching keywords...")
        job_tokens, keyword_match = match_texts(
            raw.job_description,
            raw.resume_text,
            self.normalizer,
            options.min_keyword_length,
        )

        logger.info("Step 2: Ranking sentence similarity...")
        ranked = self.ranker.rank(raw.job_description, raw.resume_text, options.top_n_matches)

        return AnalysisResult(
            match_score=round(keyword_match.score, 2),
            semantic_score=round(ranked.semantic_score, 2),
            matched_keywords=list(keyword_match.matched),
            missing_keywords=list(keyword_match.missing),
            top_matches=[
                TopMatch(
                    job_sentence=pair.job_sentence.text,
                    resume_sentence=pair.resume_sentence.text,
                    similarity=round(pair.similarity, 4),
                )
                for pair in ranked.pairs
            ],
            degraded=ranked.degraded,
        )

    @staticmethod
    def _signals(result: AnalysisResult) -> Dict[str, Any]:
        return {
            "match_score": result.match_score,
            "semantic_score": result.semantic_score,
            "matched_keywords": list(result.matched_keywords),
            "missing_keywords": list(result.missing_keywords),
        }

    @staticmethod
    def _merge(result: AnalysisResult, enrichment: Optional[Enrichment]) -> AnalysisResult:
        if enrichment is None:
            return result
        return result.model_copy(update={
            "ai_summary": enrichment.summary,
            "ai_missing_skills": list(enrichment.missing_skills),
            "ai_bullet_improvements": list(enrichment.bullet_improvements),
        })

    def _wants_enrichment(self, options: AnalysisOptions) -> bool:
        if not options.enable_ai_enrichment:
            return False
        if self.text_generator is None:
            logger.debug("No text generator configured, skipping AI enrichment")
            return False
        return True

    def _enrich(self, raw: RawInput, result: AnalysisResult) -> Optional[Enrichment]:
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(
            self.text_generator.generate,
            raw.job_description,
            raw.resume_text,
            self._signals(result),
        )
        try:
            return future.result(timeout=self.enrichment_timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(f"AI enrichment timed out after {self.enrichment_timeout}s")
        except EnrichmentUnavailable as e:
            logger.warning(f"AI enrichment unavailable: {e}")
        except Exception as e:  # noqa: BLE001
            logger.warning(f"AI enrichment failed: {e}", exc_info=True)
        finally:
            # Do not wait for a generator that overran its timeout
            executor.shutdown(wait=False)
        return None

    def analyze(self, raw: RawInput, options: Optional[AnalysisOptions] = None) -> AnalysisResult:
        """
        Analyze how well a resume matches a job description.

        Args:
            raw: Resume text and job description
            options: Analysis options (defaults to AnalysisOptions())

        Returns:
            AnalysisResult with keyword, semantic and optional AI fields

        Raises:
            InvalidInputError: If either text is empty or whitespace-only

        Example:
            >>> engine = MatchingEngine()
            >>> result = engine.analyze(RawInput(resume_text=cv, job_description=jd))
            >>> print(f"Match: {result.match_score}%")
        """
        options = options or AnalysisOptions()
        logger.info("=" * 80)
        logger.info("STARTING RESUME ANALYSIS")
        logger.info("=" * 80)

        result = self._compute(raw, options)

        if self._wants_enrichment(options):
            logger.info("Step 3: Requesting AI enrichment...")
            result = self._merge(result, self._enrich(raw, result))

        logger.info(f"ANALYSIS COMPLETE - Match: {result.match_score}%, Semantic: {result.semantic_score}%")
        return result

    async def analyze_async(
        self,
        raw: RawInput,
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """
        Same as analyze(), without blocking the event loop.

        Cancelling the awaiting task abandons the enrichment call; keyword
        and semantic computation always runs to completion.
        """
        options = options or AnalysisOptions()
        result = await asyncio.to_thread(self._compute, raw, options)

        if not self._wants_enrichment(options):
            return result

        try:
            enrichment = await asyncio.wait_for(
                asyncio.to_thread(
                    self.text_generator.generate,
                    raw.job_description,
                    raw.resume_text,
                    self._signals(result),
                ),
                timeout=self.enrichment_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"AI enrichment timed out after {self.enrichment_timeout}s")
            return result
        except EnrichmentUnavailable as e:
            logger.warning(f"AI enrichment unavailable: {e}")
            return result
        except Exception as e:  # noqa: BLE001
            logger.warning(f"AI enrichment failed: {e}", exc_info=True)
            return result
        return self._merge(result, enrichment)

    def analyze_many(
        self,
        resume_text: str,
        job_descriptions: Iterable[str],
        options: Optional[AnalysisOptions] = None,
    ) -> List[Tuple[int, AnalysisResult]]:
        """
        Analyze one resume against several job descriptions.

        Returns:
            (job_index, result) tuples sorted by match_score (highest first).
            Blank job descriptions are skipped.

        Raises:
            InvalidInputError: If the resume text itself is blank
        """
        if not resume_text or not resume_text.strip():
            raise InvalidInputError("Resume text is empty.")

        job_descriptions = list(job_descriptions)
        logger.info(f"Analyzing resume against {len(job_descriptions)} jobs")

        results = []
        for i, job_description in enumerate(job_descriptions):
            try:
                result = self.analyze(
                    RawInput(resume_text=resume_text, job_description=job_description),
                    options,
                )
            except InvalidInputError as e:
                logger.warning(f"Skipping job {i}: {e}")
                continue
            results.append((i, result))

        # Stable sort keeps input order between equal scores
        results.sort(key=lambda item: item[1].match_score, reverse=True)
        return results


def analyze(
    resume_text: str,
    job_description: str,
    options: Optional[AnalysisOptions] = None,
    engine: Optional[MatchingEngine] = None,
) -> AnalysisResult:
    """Analyze one resume against one job description."""
    engine = engine or MatchingEngine.from_settings()
    return engine.analyze(
        RawInput(resume_text=resume_text, job_description=job_description),
        options,
    )
