from typing import Dict, List, Mapping, Optional, Tuple

from schemas import DimensionResult, GapBuckets, Recommendation, RecommendationAction

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

COMPLEX_SKILLS = ["machine learning", "artificial intelligence", "blockchain",
                  "advanced statistics", "system architecture"]
MEDIUM_SKILLS = ["cloud computing", "docker", "kubernetes", "react", "angular"]

# dimension -> priority, category, title, max items, action template, timeframe,
#              impact for (>=80, >=60, else), impact when no importance is known
GAP_TEMPLATES: Dict[str, dict] = {
    "skills": dict(priority="high", category="skills", title="Skill Development", limit=5,
                   action="Learn {}", timeframe=None,
                   impacts=("critical", "high", "medium"), default_impact="high"),
    "tools": dict(priority="medium", category="tools", title="Technical Tools", limit=5,
                  action="Gain hands-on experience with {}", timeframe="Short-term (1-3 months)",
                  impacts=("high", "medium", "low"), default_impact="medium"),
    "tasks": dict(priority="medium", category="experience", title="Experience Gaps", limit=3,
                  action="Seek opportunities to gain experience in: {}",
                  timeframe="Medium-term (3-6 months)",
                  impacts=("critical", "high", "medium"), default_impact="high"),
    "knowledge": dict(priority="low", category="knowledge", title="Knowledge Areas", limit=3,
                      action="Study {}", timeframe="Short to medium-term",
                      impacts=("medium", "low", "low"), default_impact="low"),
    "workActivities": dict(priority="medium", category="workActivities", title="Work Activities",
                           limit=3, action="Develop skills in: {}",
                           timeframe="Medium-term (3-6 months)",
                           impacts=("high", "medium", "low"), default_impact="medium"),
}

BLOCK_ORDER = ["skills", "education", "tools", "tasks", "knowledge", "workActivities"]


def estimate_skill_timeframe(skill: str) -> str:
    s = skill.lower()
    if any(k in s for k in COMPLEX_SKILLS):
        return "Long-term (6-12 months)"
    if any(k in s for k in MEDIUM_SKILLS):
        return "Medium-term (3-6 months)"
    return "Short-term (1-3 months)"


def _impact(importance_score: Optional[float], impacts: Tuple[str, str, str], default: str) -> str:
    if importance_score is None:
        return default
    if importance_score >= 80:
        return impacts[0]
    if importance_score >= 60:
        return impacts[1]
    return impacts[2]


def _gap_actions(dimension: str, items: List[str],
                 importance: Dict[Tuple[str, str], float]) -> List[RecommendationAction]:
    tpl = GAP_TEMPLATES[dimension]
    scored = [(item, importance.get((dimension, item))) for item in items]
    # unknown importance sorts as 0 but keeps its place among equals
    scored.sort(key=lambda pair: pair[1] or 0, reverse=True)

    actions = []
    for item, importance_score in scored[:tpl["limit"]]:
        actions.append(RecommendationAction(
            action=tpl["action"].format(item),
            timeframe=tpl["timeframe"] or estimate_skill_timeframe(item),
            impact=_impact(importance_score, tpl["impacts"], tpl["default_impact"]),
        ))
    return actions


def _education_actions(education: DimensionResult) -> List[RecommendationAction]:
    actions = [RecommendationAction(
        action=f"Consider pursuing {education.required_level or 'the required education level'}",
        timeframe="Long-term (6-24 months)",
        impact="critical",
    )]
    for gap in education.gaps:
        actions.append(RecommendationAction(action=f"Study {gap}",
                                            timeframe="Short to medium-term", impact="medium"))
    return actions


def generate(results: Mapping[str, DimensionResult],
             gaps: Optional[GapBuckets] = None) -> List[Recommendation]:
    importance: Dict[Tuple[str, str], float] = {}
    if gaps is not None:
        for gap in gaps.all():
            importance.setdefault((gap.dimension, gap.item), gap.importance_score)

    recommendations = []
    for dimension in BLOCK_ORDER:
        data = results.get(dimension)
        if data is None:
            continue
        if dimension == "education":
            if data.meets_requirements is False:
                recommendations.append(Recommendation(
                    priority="high", category="education", title="Education Requirements",
                    actions=_education_actions(data),
                ))
            continue
        if not data.gaps:
            continue
        tpl = GAP_TEMPLATES[dimension]
        recommendations.append(Recommendation(
            priority=tpl["priority"],
            category=tpl["category"],
            title=tpl["title"],
            actions=_gap_actions(dimension, data.gaps, importance),
        ))

    recommendations.sort(key=lambda r: PRIORITY_ORDER[r.priority])
    return recommendations
