import math
from typing import Dict, List, Mapping

from schemas import (
    BreakdownDetails,
    BreakdownEntry,
    DimensionResult,
    FitCategory,
    ImprovementItem,
    ScoreBreakdown,
    ScoreSummary,
    TimeEstimate,
    TimeToQualify,
)

# Weights: technology and technologySkills share one slot
DIMENSION_WEIGHTS: Dict[str, float] = {
    "tasks": 0.25,
    "skills": 0.25,
    "technology": 0.20,
    "education": 0.15,
    "workActivities": 0.10,
    "knowledge": 0.05,
    "tools": 0.10,
}
DEFAULT_WEIGHT = 0.10

CONFIDENCE_MULTIPLIERS: Dict[str, float] = {"high": 1.0, "medium": 0.9, "low": 0.8}

DISPLAY_NAMES: Dict[str, str] = {
    "tasks": "Job Tasks",
    "skills": "Core Skills",
    "technology": "Technology Skills",
    "technologySkills": "Technology Skills",
    "education": "Education",
    "workActivities": "Work Activities",
    "knowledge": "Knowledge Areas",
    "tools": "Tools & Software",
}

TARGET_SCORE = 80

# (lower bound, category, color, description), highest first
FIT_CATEGORIES = [
    (85, "Excellent Match", "green", "You are highly qualified for this position"),
    (70, "Good Match", "blue", "You meet most requirements with some areas for improvement"),
    (55, "Moderate Match", "yellow", "You have foundational qualifications but need development in key areas"),
    (40, "Developing Match", "orange", "Significant skill development needed to meet requirements"),
]
EARLY_CAREER = ("Early Career Match", "red",
                "Consider this as a longer-term career goal requiring substantial preparation")

EDUCATION_MONTHS = [("bachelor", 48), ("master", 24), ("associate", 24), ("certification", 6)]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go up, not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def dimension_weight(dimension: str) -> float:
    if dimension == "technologySkills":
        dimension = "technology"
    return DIMENSION_WEIGHTS.get(dimension, DEFAULT_WEIGHT)


def confidence_multiplier(confidence) -> float:
    return CONFIDENCE_MULTIPLIERS.get(confidence or "medium", CONFIDENCE_MULTIPLIERS["medium"])


def _score(result: DimensionResult) -> float:
    return result.score if result.score is not None else 0.0


def overall_score(results: Mapping[str, DimensionResult]) -> float:
    weighted_sum, total_weight = 0.0, 0.0
    for dimension, data in results.items():
        weight = dimension_weight(dimension)
        weighted_sum += _score(data) * confidence_multiplier(data.confidence) * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return round_half_up(weighted_sum / total_weight, 1)


def fit_category(score: float) -> FitCategory:
    for lower, category, color, description in FIT_CATEGORIES:
        if score >= lower:
            return FitCategory(category=category, color=color, description=description)
    category, color, description = EARLY_CAREER
    return FitCategory(category=category, color=color, description=description)


def format_dimension_name(dimension: str) -> str:
    return DISPLAY_NAMES.get(dimension, dimension)


def score_breakdown(results: Mapping[str, DimensionResult]) -> ScoreBreakdown:
    buckets: Dict[str, List[BreakdownEntry]] = {
        "strengths": [], "adequate": [], "needs_improvement": [], "critical": [],
    }
    for dimension, data in results.items():
        score = _score(data)
        entry = BreakdownEntry(
            dimension=format_dimension_name(dimension),
            key=dimension,
            score=score,
            importance=data.importance or "medium",
            details=BreakdownDetails(
                matches=len(data.matches),
                gaps=len(data.gaps),
                confidence=data.confidence or "medium",
            ),
        )
        if score >= 80:
            buckets["strengths"].append(entry)
        elif score >= 65:
            buckets["adequate"].append(entry)
        elif score >= 50:
            buckets["needs_improvement"].append(entry)
        else:
            buckets["critical"].append(entry)

    for entries in buckets.values():
        entries.sort(key=lambda e: e.score, reverse=True)
    return ScoreBreakdown(**buckets)


def improvement_priority(score: float, weight: float) -> str:
    pressure = (100 - score) * weight
    if pressure > 15:
        return "high"
    if pressure > 8:
        return "medium"
    return "low"


def improvement_impact(results: Mapping[str, DimensionResult]) -> List[ImprovementItem]:
    items = []
    for dimension, data in results.items():
        score = _score(data)
        if score >= TARGET_SCORE:
            continue
        weight = dimension_weight(dimension)
        current = (score / 100) * weight
        potential = (TARGET_SCORE / 100) * weight
        items.append(ImprovementItem(
            dimension=dimension,
            current_score=score,
            target_score=TARGET_SCORE,
            potential_impact=int(round_half_up((potential - current) * 100)),
            priority=improvement_priority(score, weight),
        ))
    items.sort(key=lambda i: i.potential_impact, reverse=True)
    return items


def education_months(required_level) -> int:
    if not required_level:
        return 0
    level = required_level.lower()
    for keyword, months in EDUCATION_MONTHS:
        if keyword in level:
            return months
    return 12


def skills_months(skills: DimensionResult) -> int:
    return min(24, math.ceil(len(skills.gaps) * 2 + (70 - _score(skills)) / 10))


def experience_months(tasks: DimensionResult) -> int:
    return min(36, math.ceil((60 - _score(tasks)) / 5) * 3)


def timeframe_summary(months: int) -> str:
    if months == 0:
        return "Ready now"
    if months <= 3:
        return "Short-term (1-3 months)"
    if months <= 6:
        return "Medium-term (3-6 months)"
    if months <= 12:
        return "Long-term (6-12 months)"
    if months <= 24:
        return "Extended (1-2 years)"
    return "Multi-year journey (2+ years)"


def time_to_qualify(results: Mapping[str, DimensionResult]) -> TimeToQualify:
    estimates: List[TimeEstimate] = []

    education = results.get("education")
    if education is not None and education.meets_requirements is False:
        estimates.append(TimeEstimate(category="Education",
                                      months=education_months(education.required_level)))

    skills = results.get("skills")
    if skills is not None and _score(skills) < 70:
        estimates.append(TimeEstimate(category="Skills Development", months=skills_months(skills)))

    tasks = results.get("tasks")
    if tasks is not None and _score(tasks) < 60:
        estimates.append(TimeEstimate(category="Experience Building", months=experience_months(tasks)))

    total = sum(e.months for e in estimates)
    return TimeToQualify(total_months=total, time_estimates=estimates, summary=timeframe_summary(total))


def aggregate(results: Mapping[str, DimensionResult]) -> ScoreSummary:
    """Combine per-dimension judgements into the overall fit picture.

    Pure: the same results always give the same summary.
    """
    score = overall_score(results)
    return ScoreSummary(
        overall_score=score,
        fit_category=fit_category(score),
        score_breakdown=score_breakdown(results),
        improvement_impact=improvement_impact(results),
        time_to_qualify=time_to_qualify(results),
    )
