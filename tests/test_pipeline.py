"""Tests for the end-to-end analysis pipeline."""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock, patch

from analysis.cache import AnalysisCache
from analysis.errors import OccupationNotFound, PersistenceError, ResumeNotReady
from analysis.orchestrator import DIMENSIONS, DimensionOrchestrator
from analysis.pipeline import AnalysisPipeline

from conftest import FakeJudge

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded_store(store, resume, occupation):
    store.save_resume(resume, filename="cv.pdf", resume_id="r1")
    store.save_occupation(occupation)
    return store


@pytest.fixture
def pipeline(seeded_store, make_judges):
    return AnalysisPipeline(seeded_store, DimensionOrchestrator(make_judges()), store=seeded_store,
                            cache=AnalysisCache(), now=lambda: NOW)


class TestEndToEnd:
    """Full run against a profile that only rates tasks and skills."""

    @pytest.fixture
    def judges(self, make_judges):
        return make_judges(
            tasks=FakeJudge({"score": 0, "matches": [], "gaps": ["Code review"]}),
            skills=FakeJudge({"score": 0, "matches": [], "gaps": ["Python"]}),
        )

    @pytest.fixture
    def result(self, store, empty_resume, sparse_occupation, judges):
        store.save_resume(empty_resume, resume_id="fresh")
        store.save_occupation(sparse_occupation)
        pipeline = AnalysisPipeline(store, DimensionOrchestrator(judges), store=store)
        return pipeline.analyze("fresh", "15-1252.00")

    def test_only_rated_dimensions_call_the_judge(self, result, judges):
        assert len(judges["tasks"].calls) == 1
        assert len(judges["skills"].calls) == 1
        for dimension in ("education", "workActivities", "knowledge", "tools"):
            assert judges[dimension].calls == []

    def test_scores(self, result):
        assert result.status == "completed"
        assert list(result.dimension_scores) == list(DIMENSIONS)
        assert result.dimension_scores["education"].score == 75
        assert result.dimension_scores["tools"].score == 50
        # (75*.9*.15 + 50*.9*(.10 + .05 + .10)) / .90
        assert result.overall_fit_score == 23.8
        assert result.fit_category.category == "Early Career Match"

    def test_gaps(self, result):
        critical = {g.item: g.importance_score for g in result.gaps.critical}
        assert critical == {"Code review": 90, "Python": 85}
        assert result.gaps.important == []
        assert result.gaps.nice_to_have == []

    def test_recommendations(self, result):
        assert [r.category for r in result.recommendations] == ["skills", "experience"]
        assert result.recommendations[0].actions[0].action == "Learn Python"
        assert result.recommendations[0].actions[0].impact == "critical"
        assert result.recommendations[1].actions[0].impact == "critical"

    def test_improvement_and_time(self, result):
        top = result.improvement_impact[:2]
        assert [i.dimension for i in top] == ["tasks", "skills"]
        assert all(i.potential_impact == 20 and i.priority == "high" for i in top)
        assert result.time_to_qualify.total_months == 45
        assert result.time_to_qualify.summary == "Multi-year journey (2+ years)"


class TestAnalyze:
    """Tests for AnalysisPipeline.analyze / iter_analysis."""

    def test_resume_not_ready(self, seeded_store, make_judges):
        seeded_store.save_resume(None, resume_id="unparsed")
        pipeline = AnalysisPipeline(seeded_store, DimensionOrchestrator(make_judges()))

        with pytest.raises(ResumeNotReady, match="Resume unparsed not found or not processed"):
            pipeline.analyze("unparsed", "15-1252.00")

    def test_occupation_not_found(self, pipeline):
        with pytest.raises(OccupationNotFound):
            pipeline.analyze("r1", "99-9999.99")

    def test_not_found_before_any_event(self, pipeline):
        events = pipeline.iter_analysis("missing", "15-1252.00")
        with pytest.raises(ResumeNotReady):
            next(events)

    def test_event_sequence(self, pipeline):
        events = list(pipeline.iter_analysis("r1", "15-1252.00"))

        assert [e for e, _ in events] == ["dimension_update"] * 6 + ["completed"]
        assert [p["dimension"] for _, p in events[:-1]] == list(DIMENSIONS)
        assert events[-1][1].occupation_title == "Software Developers"

    def test_callback(self, pipeline):
        seen = []
        pipeline.analyze("r1", "15-1252.00", on_dimension_update=lambda d, r: seen.append(d))
        assert seen == list(DIMENSIONS)

    def test_completed_analysis_is_cached(self, pipeline):
        analysis = pipeline.analyze("r1", "15-1252.00")
        assert pipeline.cache.get("r1", "15-1252.00") is analysis
        assert analysis.analysis_date == NOW

    def test_failure_marks_analysis_failed(self, pipeline):
        with patch("analysis.pipeline.aggregate", side_effect=RuntimeError("boom")):
            analysis = pipeline.run("r1", "15-1252.00")

        assert analysis.status == "failed"
        assert analysis.error_message == "boom"
        assert analysis.id is None
        assert len(analysis.dimension_scores) == 6
        assert pipeline.cache.get("r1", "15-1252.00") is None
        assert pipeline.store.get_latest_analysis("r1", "15-1252.00") is None


class TestPersistence:
    """Tests for saving and reusing analyses."""

    def test_run_saves(self, pipeline):
        analysis = pipeline.run("r1", "15-1252.00")

        assert analysis.id is not None
        stored = pipeline.store.get_analysis(analysis.id)
        assert stored.overall_fit_score == analysis.overall_fit_score
        assert stored.gaps == analysis.gaps

    def test_persistence_error_carries_analysis(self, seeded_store, make_judges):
        sink = MagicMock()
        sink.save_analysis.side_effect = PersistenceError("disk full")
        pipeline = AnalysisPipeline(seeded_store, DimensionOrchestrator(make_judges()), store=sink)

        with pytest.raises(PersistenceError) as exc:
            pipeline.run("r1", "15-1252.00")

        assert exc.value.analysis is not None
        assert exc.value.analysis.status == "completed"
        assert exc.value.analysis.id is None

    def test_recent_prefers_cache(self, pipeline):
        analysis = pipeline.analyze("r1", "15-1252.00")
        assert pipeline.recent("r1", "15-1252.00") is analysis

    def test_recent_from_store_within_freshness(self, seeded_store, make_judges):
        clock = {"now": NOW}
        pipeline = AnalysisPipeline(seeded_store, DimensionOrchestrator(make_judges()),
                                    store=seeded_store, now=lambda: clock["now"])
        saved = pipeline.run("r1", "15-1252.00")

        clock["now"] = NOW + timedelta(minutes=59)
        assert pipeline.recent("r1", "15-1252.00").id == saved.id

        clock["now"] = NOW + timedelta(hours=1)
        assert pipeline.recent("r1", "15-1252.00") is None

    def test_recent_without_history(self, pipeline):
        assert pipeline.recent("r1", "15-1252.00") is None


class TestCompareDimension:
    """Tests for single-dimension comparison."""

    def test_compare(self, pipeline):
        comparison = pipeline.compare_dimension("r1", "15-1252.00", "skills")

        assert comparison.dimension == "skills"
        assert comparison.occupation_title == "Software Developers"
        assert comparison.result.score == 70
        assert comparison.timestamp == NOW

    def test_compare_missing_resume(self, pipeline):
        with pytest.raises(ResumeNotReady):
            pipeline.compare_dimension("nobody", "15-1252.00", "skills")
