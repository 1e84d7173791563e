"""Tests for gap prioritization."""

import pytest

from analysis import gaps
from schemas import DimensionResult, OccupationFacts


@pytest.fixture
def rated_occupation():
    return OccupationFacts.model_validate({
        "code": "11-1021.00",
        "title": "General and Operations Managers",
        "skills": [
            {"name": "Coordination", "importance": 80},
            {"name": "Monitoring", "importance": 79},
            {"name": "Negotiation", "importance": 60},
            {"name": "Persuasion", "importance": 59},
            {"name": "Time Management", "importance": None},
        ],
        "tasks": [{"text": "Direct and coordinate activities of businesses", "importance": 92}],
        "tools": [{"name": "Spreadsheet software"}],
    })


class TestMatchImportance:
    """Tests for matching a gap back to an occupation fact."""

    def test_exact_match_wins(self):
        facts = [("Python programming", 60), ("python", 90)]
        assert gaps.match_importance("Python", facts) == 90

    def test_containment_either_direction(self):
        facts = [("Perform code review of changes", 88)]
        assert gaps.match_importance("code review", facts) == 88
        assert gaps.match_importance("Perform code review of changes weekly", facts) == 88

    def test_first_containment_in_profile_order(self):
        facts = [("Data analysis", 70), ("Advanced data analysis", 95)]
        assert gaps.match_importance("data analysis tools", facts) == 70

    def test_no_match(self):
        assert gaps.match_importance("Welding", [("Programming", 85)]) is None
        assert gaps.match_importance("", [("Programming", 85)]) is None


class TestPrioritize:
    """Tests for bucketing gaps by O*NET importance."""

    def _buckets(self, occupation, **gap_lists):
        results = {d: DimensionResult(dimension=d, score=40, gaps=items) for d, items in gap_lists.items()}
        return gaps.prioritize(results, occupation)

    def test_importance_thresholds(self, rated_occupation):
        buckets = self._buckets(rated_occupation,
                                skills=["Coordination", "Monitoring", "Negotiation", "Persuasion"])

        assert [g.item for g in buckets.critical] == ["Coordination"]
        assert [g.item for g in buckets.important] == ["Monitoring", "Negotiation"]
        assert [g.item for g in buckets.nice_to_have] == ["Persuasion"]

    def test_importance_labels(self, rated_occupation):
        buckets = self._buckets(rated_occupation, skills=["Coordination", "Negotiation", "Persuasion"])

        assert buckets.critical[0].importance == "high"
        assert buckets.important[0].importance == "medium"
        assert buckets.nice_to_have[0].importance == "low"

    def test_unmatched_gap_is_important(self, rated_occupation):
        buckets = self._buckets(rated_occupation, skills=["Underwater basket weaving"])
        gap = buckets.important[0]

        assert gap.importance_score == 50
        assert gap.priority == "important"
        assert buckets.critical == [] and buckets.nice_to_have == []

    def test_unrated_fact_is_important(self, rated_occupation):
        buckets = self._buckets(rated_occupation, skills=["Time Management"])
        assert buckets.important[0].importance_score == 50

    def test_dimension_without_ratings(self, rated_occupation):
        buckets = self._buckets(rated_occupation, tools=["Spreadsheet software"])
        assert [g.item for g in buckets.important] == ["Spreadsheet software"]

    def test_sorted_by_importance_within_dimension(self, rated_occupation):
        buckets = self._buckets(rated_occupation, skills=["Negotiation", "Monitoring"])
        assert [g.item for g in buckets.important] == ["Monitoring", "Negotiation"]

    def test_gap_keeps_dimension_score(self, rated_occupation):
        buckets = self._buckets(rated_occupation, tasks=["coordinate activities"])
        gap = buckets.critical[0]

        assert gap.dimension == "tasks"
        assert gap.score == 40
        assert gap.importance_score == 92

    def test_no_gaps(self, rated_occupation):
        buckets = gaps.prioritize({"skills": DimensionResult(score=95)}, rated_occupation)
        assert buckets.all() == []


class TestPrioritizeWithoutOccupation:
    """Tests for the score-based fallback when no profile is available."""

    @pytest.mark.parametrize("dimension,score,expected", [
        ("skills", 40, "critical"),
        ("tasks", 49, "critical"),
        ("knowledge", 40, "important"),
        ("tools", 60, "important"),
        ("education", 69, "important"),
        ("knowledge", 60, "nice_to_have"),
        ("skills", 75, "nice_to_have"),
    ])
    def test_dimension_heuristic(self, dimension, score, expected):
        results = {dimension: DimensionResult(score=score, gaps=["Something"])}
        buckets = gaps.prioritize(results)
        assert getattr(buckets, expected)[0].item == "Something"


class TestTopGaps:
    """Tests for flattening buckets."""

    def test_most_urgent_first(self, rated_occupation):
        results = {
            "skills": DimensionResult(score=40, gaps=["Persuasion", "Monitoring", "Coordination"]),
        }
        top = gaps.top_gaps(gaps.prioritize(results, rated_occupation))
        assert [g.priority for g in top] == ["critical", "important", "nice_to_have"]

    def test_max_items(self, rated_occupation):
        results = {"skills": DimensionResult(score=40, gaps=[f"Gap {i}" for i in range(15)])}
        assert len(gaps.top_gaps(gaps.prioritize(results, rated_occupation))) == 10
        assert len(gaps.top_gaps(gaps.prioritize(results, rated_occupation), max_items=3)) == 3
