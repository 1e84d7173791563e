"""Gap prioritization against O*NET importance ratings.

Every gap a judge reports is matched back to the occupation fact it came
from, using plain case-insensitive containment in either direction. The
matched fact's importance (0-100) decides the bucket:

    >= 80  critical
    >= 60  important
    else   nice_to_have

Gaps that cannot be matched to a rated fact keep a neutral importance of 50
and are filed as ``important``.
"""

from typing import Callable, Dict, List, Mapping, Optional, Tuple

from schemas import DimensionResult, GapBuckets, OccupationFacts, PrioritizedGap

DEFAULT_IMPORTANCE = 50.0
UNMATCHED_PRIORITY = "important"

CRITICAL_DIMENSIONS = {"tasks", "skills"}
IMPORTANT_DIMENSIONS = {"education", "technology", "tools"}

PRIORITY_WEIGHTS: Dict[str, float] = {"critical": 1.0, "important": 0.7, "nice_to_have": 0.3}

# dimension -> [(fact name, importance)]
_FACT_SOURCES: Dict[str, Callable[[OccupationFacts], List[Tuple[str, Optional[float]]]]] = {
    "tasks": lambda o: [(t.text, t.importance) for t in o.tasks],
    "skills": lambda o: [(s.name, s.importance) for s in o.skills],
    "knowledge": lambda o: [(k.name, k.importance) for k in o.knowledge],
    "workActivities": lambda o: [(w.name, w.importance) for w in o.work_activities],
}


def priority_for_importance(importance_score: float) -> str:
    if importance_score >= 80:
        return "critical"
    if importance_score >= 60:
        return "important"
    return "nice_to_have"


def importance_label(importance_score: float) -> str:
    if importance_score >= 80:
        return "high"
    if importance_score >= 60:
        return "medium"
    return "low"


def priority_for_dimension(dimension: str, score: float) -> str:
    """Fallback used when no occupation profile is available."""
    if score < 50:
        return "critical" if dimension in CRITICAL_DIMENSIONS else "important"
    if score < 70:
        return "important" if dimension in IMPORTANT_DIMENSIONS else "nice_to_have"
    return "nice_to_have"


def match_importance(item: str, facts: List[Tuple[str, Optional[float]]]) -> Optional[float]:
    """Importance of the fact best matching ``item``, or None when nothing matches.

    An exact name match wins; otherwise the first fact (in profile order)
    containing the item or contained in it.
    """
    needle = item.strip().lower()
    if not needle:
        return None
    fallback = None
    for name, importance in facts:
        hay = (name or "").strip().lower()
        if not hay:
            continue
        if hay == needle:
            return importance
        if fallback is None and (needle in hay or hay in needle):
            fallback = (importance,)
    return fallback[0] if fallback else None


def _rank_dimension(dimension: str, data: DimensionResult,
                    occupation: Optional[OccupationFacts]) -> List[PrioritizedGap]:
    ranked = []
    source = _FACT_SOURCES.get(dimension)
    facts = source(occupation) if (occupation is not None and source) else []

    for item in data.gaps:
        if occupation is None:
            importance_score = DEFAULT_IMPORTANCE
            priority = priority_for_dimension(dimension, data.score)
        else:
            matched = match_importance(item, facts)
            if matched is None:
                importance_score = DEFAULT_IMPORTANCE
                priority = UNMATCHED_PRIORITY
            else:
                importance_score = float(matched)
                priority = priority_for_importance(importance_score)
        ranked.append(PrioritizedGap(
            dimension=dimension,
            item=item,
            score=data.score,
            importance_score=importance_score,
            priority=priority,
            importance=importance_label(importance_score),
        ))

    ranked.sort(key=lambda g: g.importance_score, reverse=True)
    return ranked


def prioritize(results: Mapping[str, DimensionResult],
               occupation: Optional[OccupationFacts] = None) -> GapBuckets:
    buckets = GapBuckets()
    for dimension, data in results.items():
        if not data.gaps:
            continue
        for gap in _rank_dimension(dimension, data, occupation):
            getattr(buckets, gap.priority).append(gap)
    return buckets


def top_gaps(buckets: GapBuckets, max_items: int = 10) -> List[PrioritizedGap]:
    """Flatten the buckets, most urgent first."""
    flat = buckets.all()
    flat.sort(key=lambda g: PRIORITY_WEIGHTS[g.priority], reverse=True)
    return flat[:max_items]
