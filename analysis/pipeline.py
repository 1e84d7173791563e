"""Top-level analysis flow: facts -> six judgements -> scores, gaps, advice."""

import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from schemas import Analysis, DimensionComparison, DimensionResult, OccupationFacts, ResumeFacts
from .cache import AnalysisCache
from .errors import OccupationNotFound, PersistenceError, ResumeNotReady
from .gaps import prioritize
from .orchestrator import DimensionOrchestrator, OnResult
from .recommendations import generate
from .scorer import aggregate

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_SECONDS = 3600


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo; they are stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


class AnalysisPipeline:
    """Wires the orchestrator, gap prioritizer, scorer and recommender.

    ``facts`` supplies ``get_resume_facts(resume_id)`` and
    ``get_occupation_facts(code)``; ``store`` (optional) supplies
    ``save_analysis`` and ``get_latest_analysis``. Both are usually the same
    AnalysisStore.
    """

    def __init__(self, facts, orchestrator: DimensionOrchestrator, store=None,
                 cache: Optional[AnalysisCache] = None,
                 freshness_seconds: float = DEFAULT_FRESHNESS_SECONDS,
                 now: Callable[[], datetime] = utcnow):
        self.facts = facts
        self.orchestrator = orchestrator
        self.store = store
        self.cache = cache
        self.freshness_seconds = freshness_seconds
        self.now = now

    def load(self, resume_id: str, occupation_code: str) -> Tuple[ResumeFacts, OccupationFacts]:
        resume = self.facts.get_resume_facts(resume_id)
        if resume is None:
            raise ResumeNotReady(resume_id)
        occupation = self.facts.get_occupation_facts(occupation_code)
        if occupation is None:
            raise OccupationNotFound(occupation_code)
        return resume, occupation

    def assemble(self, resume_id: str, occupation: OccupationFacts,
                 results: Dict[str, DimensionResult], started: float) -> Analysis:
        gaps = prioritize(results, occupation)
        summary = aggregate(results)
        recommendations = generate(results, gaps)
        return Analysis(
            resume_id=resume_id,
            occupation_code=occupation.code,
            occupation_title=occupation.title,
            analysis_date=self.now(),
            overall_fit_score=summary.overall_score,
            fit_category=summary.fit_category,
            dimension_scores=results,
            score_breakdown=summary.score_breakdown,
            gaps=gaps,
            recommendations=recommendations,
            improvement_impact=summary.improvement_impact,
            time_to_qualify=summary.time_to_qualify,
            processing_time_ms=_elapsed_ms(started),
            status="completed",
        )

    def iter_analysis(self, resume_id: str, occupation_code: str) -> Iterator[Tuple[str, Any]]:
        """Yield ``("dimension_update", {...})`` per dimension, then the analysis.

        The last event is ``("completed", Analysis)`` or ``("failed", Analysis)``.
        Missing inputs raise NotFoundError before anything is yielded.
        """
        started = time.perf_counter()
        resume, occupation = self.load(resume_id, occupation_code)
        logger.info("Starting analysis: resume %s vs occupation %s", resume_id, occupation_code)

        results: Dict[str, DimensionResult] = {}
        try:
            for dimension, result in self.orchestrator.iter_results(resume, occupation):
                results[dimension] = result
                yield "dimension_update", {"dimension": dimension, "scores": result}
            analysis = self.assemble(resume_id, occupation, results, started)
        except Exception as e:
            logger.exception("Analysis failed: resume %s vs occupation %s", resume_id, occupation_code)
            analysis = Analysis(
                resume_id=resume_id,
                occupation_code=occupation_code,
                occupation_title=occupation.title,
                analysis_date=self.now(),
                dimension_scores=results,
                processing_time_ms=_elapsed_ms(started),
                status="failed",
                error_message=str(e),
            )
            yield "failed", analysis
            return

        if self.cache is not None:
            self.cache.set(resume_id, occupation_code, analysis)
        logger.info("Analysis completed in %dms. Overall score: %s",
                    analysis.processing_time_ms, analysis.overall_fit_score)
        yield "completed", analysis

    def analyze(self, resume_id: str, occupation_code: str,
                on_dimension_update: Optional[OnResult] = None) -> Analysis:
        for event, payload in self.iter_analysis(resume_id, occupation_code):
            if event == "dimension_update":
                if on_dimension_update is not None:
                    on_dimension_update(payload["dimension"], payload["scores"])
            else:
                return payload
        raise RuntimeError("analysis stream ended without a result")

    def save(self, analysis: Analysis) -> Analysis:
        if self.store is None:
            return analysis
        try:
            analysis.id = self.store.save_analysis(analysis)
        except PersistenceError as e:
            e.analysis = analysis
            raise
        return analysis

    def run(self, resume_id: str, occupation_code: str,
            on_dimension_update: Optional[OnResult] = None) -> Analysis:
        """Analyze and persist. PersistenceError still carries the analysis."""
        analysis = self.analyze(resume_id, occupation_code, on_dimension_update)
        if analysis.status == "completed":
            self.save(analysis)
        return analysis

    def recent(self, resume_id: str, occupation_code: str) -> Optional[Analysis]:
        if self.cache is not None:
            cached = self.cache.get(resume_id, occupation_code)
            if cached is not None:
                return cached
        if self.store is None:
            return None

        latest = self.store.get_latest_analysis(resume_id, occupation_code)
        if latest is None or latest.status != "completed":
            return None
        if self.now() - _aware(latest.analysis_date) < timedelta(seconds=self.freshness_seconds):
            return latest
        return None

    def compare_dimension(self, resume_id: str, occupation_code: str, dimension: str) -> DimensionComparison:
        resume, occupation = self.load(resume_id, occupation_code)
        result = self.orchestrator.compare(dimension, resume, occupation)
        return DimensionComparison(
            dimension=dimension,
            occupation_code=occupation_code,
            occupation_title=occupation.title,
            result=result,
            timestamp=self.now(),
        )
