from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Level = Literal["low", "medium", "high"]
Priority = Literal["critical", "important", "nice_to_have"]


def _text_items(value: Any) -> List[str]:
    """Coerce judge output lists to plain strings (None -> [])."""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    items = []
    for v in value:
        if isinstance(v, dict):
            v = v.get("item") or v.get("name") or v.get("text") or ""
        v = str(v).strip()
        if v:
            items.append(v)
    return items


# -------------------------------------------------------------------
# Resume side
# -------------------------------------------------------------------
class ExperienceEntry(BaseModel):
    company: Optional[str] = None
    role: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    responsibilities: List[str] = []
    achievements: List[str] = []


class SkillSet(BaseModel):
    core: List[str] = []
    technical: List[str] = []
    soft: List[str] = []
    tools: List[str] = []
    certifications: List[str] = []
    languages: List[str] = []
    spoken_languages: List[str] = []
    programming_languages: List[str] = []

    @model_validator(mode="before")
    @classmethod
    def _split_languages(cls, data: Any) -> Any:
        # parser output nests languages as {"spoken": [...], "programming": [...]}
        if isinstance(data, dict) and isinstance(data.get("languages"), dict):
            data = dict(data)
            langs = data.pop("languages")
            data.setdefault("spoken_languages", langs.get("spoken") or [])
            data.setdefault("programming_languages", langs.get("programming") or [])
        return data

    def all_skills(self) -> List[str]:
        seen, out = set(), []
        for group in (self.core, self.technical, self.soft, self.tools, self.certifications,
                      self.languages, self.spoken_languages, self.programming_languages):
            for s in group:
                if s.lower() not in seen:
                    seen.add(s.lower())
                    out.append(s)
        return out


class EducationEntry(BaseModel):
    degree: Optional[str] = None
    field: Optional[str] = None
    institution: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ResumeFacts(BaseModel):
    experience: List[ExperienceEntry] = []
    skills: SkillSet = Field(default_factory=SkillSet)
    education: List[EducationEntry] = []
    summary: str = ""


# -------------------------------------------------------------------
# Occupation side (O*NET profile)
# -------------------------------------------------------------------
class OccupationTask(BaseModel):
    text: str
    importance: Optional[float] = None


class RatedElement(BaseModel):
    name: str
    importance: Optional[float] = None
    level: Optional[float] = None
    description: str = ""


class TechnologySkill(BaseModel):
    name: str
    hot: bool = False


class Tool(BaseModel):
    name: str


class EducationLevel(BaseModel):
    category: str
    percentage: float = 0.0


class JobZone(BaseModel):
    job_zone: Optional[int] = None
    education_needed: str = ""


class OccupationFacts(BaseModel):
    code: str
    title: str = ""
    tasks: List[OccupationTask] = []
    skills: List[RatedElement] = []
    technology_skills: List[TechnologySkill] = []
    tools: List[Tool] = []
    work_activities: List[RatedElement] = []
    knowledge: List[RatedElement] = []
    education: List[EducationLevel] = []
    job_zone: Optional[JobZone] = None


# -------------------------------------------------------------------
# Per-dimension judgement
# -------------------------------------------------------------------
class DimensionResult(BaseModel):
    # judges may answer in camelCase (meetsRequirements); output stays snake_case
    model_config = ConfigDict(
        extra="allow",
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
    )

    dimension: Optional[str] = None
    score: float = 0
    matches: List[str] = []
    gaps: List[str] = []
    confidence: Optional[Level] = None
    importance: Optional[Level] = None
    meets_requirements: Optional[bool] = None
    education_level: Optional[str] = None
    required_level: Optional[str] = None
    alternative_tools: List[str] = []
    strength_areas: List[str] = []
    recommendations: List[str] = []
    additional_skills: List[str] = []
    note: Optional[str] = None
    error: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> float:
        # a judge that omits the score counts as zero, never as missing
        if v is None or v == "":
            return 0
        v = float(v)
        if not math.isfinite(v):
            return 0
        return max(0.0, min(100.0, v))

    @field_validator("matches", "gaps", "alternative_tools", "strength_areas",
                     "recommendations", "additional_skills", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> List[str]:
        return _text_items(v)

    @field_validator("confidence", "importance", mode="before")
    @classmethod
    def _level(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and v.strip().lower() in ("low", "medium", "high"):
            return v.strip().lower()
        return None


class PrioritizedGap(BaseModel):
    dimension: str
    item: str
    score: float = 0
    importance_score: float = 50
    priority: Priority
    importance: Level


class GapBuckets(BaseModel):
    critical: List[PrioritizedGap] = []
    important: List[PrioritizedGap] = []
    nice_to_have: List[PrioritizedGap] = []

    def all(self) -> List[PrioritizedGap]:
        return self.critical + self.important + self.nice_to_have


# -------------------------------------------------------------------
# Aggregation output
# -------------------------------------------------------------------
class FitCategory(BaseModel):
    category: str
    color: str
    description: str


class BreakdownDetails(BaseModel):
    matches: int = 0
    gaps: int = 0
    confidence: Level = "medium"


class BreakdownEntry(BaseModel):
    dimension: str
    key: str
    score: float
    importance: Level = "medium"
    details: BreakdownDetails


class ScoreBreakdown(BaseModel):
    strengths: List[BreakdownEntry] = []
    adequate: List[BreakdownEntry] = []
    needs_improvement: List[BreakdownEntry] = []
    critical: List[BreakdownEntry] = []


class ImprovementItem(BaseModel):
    dimension: str
    current_score: float
    target_score: int = 80
    potential_impact: int
    priority: Literal["high", "medium", "low"]


class TimeEstimate(BaseModel):
    category: str
    months: int


class TimeToQualify(BaseModel):
    total_months: int = 0
    time_estimates: List[TimeEstimate] = []
    summary: str = "Ready now"


class ScoreSummary(BaseModel):
    overall_score: float
    fit_category: FitCategory
    score_breakdown: ScoreBreakdown
    improvement_impact: List[ImprovementItem]
    time_to_qualify: TimeToQualify


class RecommendationAction(BaseModel):
    action: str
    timeframe: str
    impact: str


class Recommendation(BaseModel):
    priority: Literal["high", "medium", "low"]
    category: str
    title: str
    actions: List[RecommendationAction] = []


# -------------------------------------------------------------------
# Analysis record
# -------------------------------------------------------------------
class Analysis(BaseModel):
    id: Optional[int] = None
    resume_id: str
    occupation_code: str
    occupation_title: Optional[str] = None
    analysis_date: datetime
    overall_fit_score: float = 0.0
    fit_category: Optional[FitCategory] = None
    dimension_scores: Dict[str, DimensionResult] = {}
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    gaps: GapBuckets = Field(default_factory=GapBuckets)
    recommendations: List[Recommendation] = []
    improvement_impact: List[ImprovementItem] = []
    time_to_qualify: TimeToQualify = Field(default_factory=TimeToQualify)
    processing_time_ms: int = 0
    status: Literal["completed", "failed"] = "completed"
    error_message: Optional[str] = None


class AnalysisSummary(BaseModel):
    id: int
    resume_id: str
    occupation_code: str
    occupation_title: Optional[str] = None
    overall_fit_score: float
    analysis_date: datetime
    status: str


class AnalysisStatistics(BaseModel):
    total: int = 0
    average_score: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    good_matches: int = 0
    poor_matches: int = 0
    avg_processing_time_ms: Optional[float] = None


class DimensionComparison(BaseModel):
    dimension: str
    occupation_code: str
    occupation_title: Optional[str] = None
    result: DimensionResult
    timestamp: datetime


# -------------------------------------------------------------------
# API payloads
# -------------------------------------------------------------------
class ResumeIn(BaseModel):
    resume_id: Optional[str] = None
    filename: Optional[str] = None
    structured_data: Optional[ResumeFacts] = None


class ResumeOut(BaseModel):
    resume_id: str
    filename: Optional[str] = None
    structured_data: Optional[ResumeFacts] = None
    created_at: Optional[datetime] = None


class CompareDimensionIn(BaseModel):
    resume_id: str
    occupation_code: str
    dimension: str
