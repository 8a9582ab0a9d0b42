"""
Unit tests for the analysis orchestrator.
"""

import asyncio
import logging
import time
import unittest

from resume_match import analyze
from resume_match.analyzer import MatchingEngine
from resume_match.enrichment import Enrichment, TextGenerator
from resume_match.errors import EnrichmentUnavailable, InvalidInputError, SimilarityUnavailable
from resume_match.models import AnalysisOptions, RawInput, Settings
from resume_match.normalizer import TextNormalizer, normalize
from resume_match.ranker import SemanticRanker
from resume_match.similarity import SimilarityProvider, TokenOverlapSimilarity

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


# Sample data
SAMPLE_JOB_DESCRIPTION = """
Backend Engineer - Platform Team

We are hiring a backend engineer to build and operate our payment APIs.

Requirements:
- 3+ years of Python and Django
- Experience with PostgreSQL and Redis
- Docker and Kubernetes in production
- AWS (ECS, Lambda, S3)

Responsibilities:
- Design REST APIs for internal teams
- Mentor junior engineers
- Improve CI/CD pipelines
"""

SAMPLE_RESUME = """
Jordan Lee
Backend Engineer

SKILLS
Python, Django, Flask, PostgreSQL, Docker, GitHub Actions

EXPERIENCE
Software Engineer | Acme Payments | 2021-2024
- Designed REST APIs for billing and payouts.
- Migrated services to Docker and cut deploy time by half.
- Mentored three junior engineers.
"""


class FakeGenerator(TextGenerator):
    def __init__(self, delay=0.0, error=None):
        self.delay = delay
        self.error = error
        self.signals = None

    def generate(self, job_description, resume_text, signals):
        self.signals = signals
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return Enrichment(
            summary="Solid backend match.",
            missing_skills=["AWS", "Kubernetes"],
            bullet_improvements=["Deployed Django services on Docker to production."],
        )


class FailingSimilarity(SimilarityProvider):
    def similarity_matrix(self, job_sentences, resume_sentences):
        raise SimilarityUnavailable("embedding service down")


def make_engine(**kwargs):
    kwargs.setdefault("ranker", SemanticRanker(TokenOverlapSimilarity()))
    return MatchingEngine(**kwargs)


def raw(resume_text, job_description):
    return RawInput(resume_text=resume_text, job_description=job_description)


class TestAnalyze(unittest.TestCase):
    """Test keyword and semantic results of a full analysis."""

    def setUp(self):
        self.engine = make_engine()

    def test_python_developer_example(self):
        result = self.engine.analyze(raw(
            "Experienced Python developer skilled in Docker and Kubernetes",
            "Looking for a Python developer with AWS and Docker experience",
        ))
        self.assertTrue({"python", "docker", "developer"} <= set(result.matched_keywords))
        self.assertIn("aws", result.missing_keywords)
        total = len(result.matched_keywords) + len(result.missing_keywords)
        self.assertAlmostEqual(result.match_score, round(100 * len(result.matched_keywords) / total, 2))

    def test_partition_matches_normalized_job(self):
        result = self.engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        matched, missing = set(result.matched_keywords), set(result.missing_keywords)
        self.assertEqual(matched & missing, set())
        self.assertEqual(matched | missing, set(normalize(SAMPLE_JOB_DESCRIPTION)))

    def test_score_bounds_and_top_matches(self):
        result = self.engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION),
                                     AnalysisOptions(top_n_matches=3))
        self.assertGreater(result.match_score, 0)
        self.assertLess(result.match_score, 100)
        self.assertLessEqual(len(result.top_matches), 3)
        similarities = [m.similarity for m in result.top_matches]
        self.assertEqual(similarities, sorted(similarities, reverse=True))
        self.assertGreaterEqual(result.semantic_score, 0)
        self.assertLessEqual(result.semantic_score, 100)
        self.assertFalse(result.degraded)

    def test_zero_iff_nothing_matched(self):
        result = self.engine.analyze(raw("Pastry chef, sourdough baking", "Python AWS Docker"))
        self.assertEqual(result.matched_keywords, [])
        self.assertEqual(result.match_score, 0.0)

    def test_hundred_iff_nothing_missing(self):
        result = self.engine.analyze(raw("Docker, AWS and Python daily", "Python AWS Docker"))
        self.assertEqual(result.missing_keywords, [])
        self.assertEqual(result.match_score, 100.0)

    def test_stop_word_job_description(self):
        result = self.engine.analyze(raw("Python developer", "and the of with for"))
        self.assertEqual(result.match_score, 0.0)
        self.assertEqual(result.matched_keywords, [])
        self.assertEqual(result.missing_keywords, [])

    def test_min_keyword_length_option(self):
        result = self.engine.analyze(raw("Python", "Python AWS"), AnalysisOptions(min_keyword_length=4))
        self.assertEqual(result.matched_keywords, ["python"])
        self.assertEqual(result.missing_keywords, [])

    def test_alias_survives_min_keyword_length(self):
        result = self.engine.analyze(raw("py and k8s", "Python Kubernetes"), AnalysisOptions(min_keyword_length=3))
        self.assertEqual(result.matched_keywords, ["python", "kubernetes"])
        self.assertEqual(result.missing_keywords, [])

    def test_degraded_flag(self):
        engine = make_engine(ranker=SemanticRanker(FailingSimilarity()))
        result = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertTrue(result.degraded)
        self.assertGreater(len(result.matched_keywords), 0)

    def test_module_level_analyze(self):
        result = analyze("Senior Python developer", "Python developer", engine=self.engine)
        self.assertEqual(result.match_score, 100.0)


class TestSharedNormalizer(unittest.TestCase):
    """Test that one normalizer drives keyword matching and sentence ranking."""

    def setUp(self):
        self.normalizer = TextNormalizer(stop_words={"python"}, aliases={})

    def test_default_ranker_uses_engine_normalizer(self):
        engine = MatchingEngine(normalizer=self.normalizer)
        self.assertIs(engine.ranker.provider.normalizer, self.normalizer)
        self.assertIs(engine.ranker.fallback.normalizer, self.normalizer)

        result = engine.analyze(raw("Python.", "Python."), AnalysisOptions(enable_ai_enrichment=False))
        self.assertEqual(result.matched_keywords, [])
        self.assertEqual(result.match_score, 0.0)
        self.assertEqual(result.semantic_score, 0.0)

    def test_from_settings_shares_normalizer(self):
        engine = MatchingEngine.from_settings(Settings(similarity_provider="overlap"), normalizer=self.normalizer)
        self.assertIs(engine.normalizer, self.normalizer)
        self.assertIs(engine.ranker.provider.normalizer, self.normalizer)

        result = engine.analyze(raw("Python.", "Python."))
        self.assertEqual(result.match_score, 0.0)
        self.assertEqual(result.semantic_score, 0.0)

    def test_degraded_ranking_uses_engine_normalizer(self):
        engine = MatchingEngine(normalizer=self.normalizer)
        engine.ranker.provider = FailingSimilarity()
        result = engine.analyze(raw("Python Django.", "Python Flask."))
        self.assertTrue(result.degraded)
        # Only django and flask remain, so the sentences share nothing
        self.assertEqual(result.semantic_score, 0.0)


class TestInvalidInput(unittest.TestCase):
    """Test hard failures."""

    def setUp(self):
        self.engine = make_engine()

    def test_empty_resume(self):
        with self.assertRaises(InvalidInputError):
            self.engine.analyze(raw("", "Python developer"))

    def test_whitespace_job_description(self):
        with self.assertRaises(InvalidInputError):
            self.engine.analyze(raw("Python developer", "  \n\t"))

    def test_options_validation(self):
        with self.assertRaises(ValueError):
            AnalysisOptions(top_n_matches=0)


class TestEnrichment(unittest.TestCase):
    """Test best-effort AI enrichment."""

    def test_enrichment_fields_populated(self):
        generator = FakeGenerator()
        result = make_engine(text_generator=generator).analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertEqual(result.ai_summary, "Solid backend match.")
        self.assertEqual(result.ai_missing_skills, ["AWS", "Kubernetes"])
        self.assertEqual(len(result.ai_bullet_improvements), 1)
        self.assertEqual(generator.signals["match_score"], result.match_score)
        self.assertEqual(generator.signals["missing_keywords"], result.missing_keywords)

    def test_enrichment_disabled(self):
        generator = FakeGenerator()
        result = make_engine(text_generator=generator).analyze(
            raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION),
            AnalysisOptions(enable_ai_enrichment=False),
        )
        self.assertIsNone(result.ai_summary)
        self.assertIsNone(generator.signals)

    def test_no_generator_configured(self):
        result = make_engine().analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertIsNone(result.ai_summary)
        self.assertIsNone(result.ai_missing_skills)
        self.assertIsNone(result.ai_bullet_improvements)

    def test_enrichment_error_keeps_scores(self):
        engine = make_engine(text_generator=FakeGenerator(error=EnrichmentUnavailable("bad json")))
        result = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertIsNone(result.ai_summary)
        self.assertGreater(result.match_score, 0)

    def test_unexpected_enrichment_error(self):
        engine = make_engine(text_generator=FakeGenerator(error=RuntimeError("boom")))
        result = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertIsNone(result.ai_missing_skills)

    def test_enrichment_timeout(self):
        engine = make_engine(text_generator=FakeGenerator(delay=1.0), enrichment_timeout=0.05)
        started = time.monotonic()
        result = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertLess(time.monotonic() - started, 0.9)
        self.assertIsNone(result.ai_summary)
        self.assertGreater(result.match_score, 0)


class TestAnalyzeAsync(unittest.TestCase):

    def test_async_matches_sync(self):
        engine = make_engine(text_generator=FakeGenerator())
        sync_result = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        async_result = asyncio.run(engine.analyze_async(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION)))
        self.assertEqual(sync_result, async_result)

    def test_async_timeout(self):
        engine = make_engine(text_generator=FakeGenerator(delay=1.0), enrichment_timeout=0.05)
        result = asyncio.run(engine.analyze_async(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION)))
        self.assertIsNone(result.ai_summary)

    def test_cancel_abandons_enrichment(self):
        generator = FakeGenerator(delay=0.5)
        engine = make_engine(text_generator=generator, enrichment_timeout=5.0)

        async def cancel_during_enrichment():
            task = asyncio.create_task(engine.analyze_async(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION)))
            while generator.signals is None:
                await asyncio.sleep(0.01)
            started = time.monotonic()
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task
            return time.monotonic() - started

        elapsed = asyncio.run(cancel_during_enrichment())
        self.assertLess(elapsed, 0.3)

    def test_async_invalid_input(self):
        with self.assertRaises(InvalidInputError):
            asyncio.run(make_engine().analyze_async(raw("   ", SAMPLE_JOB_DESCRIPTION)))


class TestAnalyzeMany(unittest.TestCase):

    def test_sorted_by_match_score(self):
        jobs = [
            "Pastry chef for artisan bakery",
            "Python Django PostgreSQL Docker",
            "   ",
            "Python developer with Kubernetes and Terraform",
        ]
        results = make_engine().analyze_many(SAMPLE_RESUME, jobs)
        self.assertEqual([i for i, _ in results], [1, 3, 0])
        scores = [r.match_score for _, r in results]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_blank_resume(self):
        with self.assertRaises(InvalidInputError):
            make_engine().analyze_many("", ["Python"])


class TestDeterminism(unittest.TestCase):
    """Test that scoring is deterministic."""

    def test_idempotent(self):
        engine = make_engine()
        first = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        second = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        self.assertEqual(first.match_score, second.match_score)
        self.assertEqual(first.matched_keywords, second.matched_keywords)
        self.assertEqual(first.missing_keywords, second.missing_keywords)
        self.assertEqual(first.top_matches, second.top_matches)

    def test_adding_matching_keyword_never_lowers_score(self):
        engine = make_engine()
        base = engine.analyze(raw(SAMPLE_RESUME, SAMPLE_JOB_DESCRIPTION))
        improved = engine.analyze(raw(SAMPLE_RESUME + "\nAWS Lambda and Kubernetes.", SAMPLE_JOB_DESCRIPTION))
        self.assertGreaterEqual(improved.match_score, base.match_score)
        self.assertIn("aws", improved.matched_keywords)


if __name__ == "__main__":
    unittest.main()
