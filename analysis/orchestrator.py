import time
import logging
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

from schemas import DimensionResult, OccupationFacts, ResumeFacts

logger = logging.getLogger(__name__)

DIMENSIONS = ("tasks", "skills", "education", "workActivities", "knowledge", "tools")

Judge = Callable[[Dict[str, Any], Dict[str, Any]], Any]
OnResult = Callable[[str, DimensionResult], None]

# dimension -> occupation attribute that must be non-empty for a real comparison
_OCCUPATION_SOURCE = {
    "tasks": "tasks",
    "skills": "skills",
    "education": "education",
    "workActivities": "work_activities",
    "knowledge": "knowledge",
    "tools": "tools",
}

_FALLBACK_NOTES = {
    "tasks": "No task data available",
    "skills": "No skills data available",
    "workActivities": "No work activities data available",
    "knowledge": "No knowledge data available",
    "tools": "No tools data available",
}


def fallback_result(dimension: str) -> DimensionResult:
    if dimension == "education":
        return DimensionResult(dimension=dimension, score=75, meets_requirements=True,
                               note="No specific education requirements")
    return DimensionResult(dimension=dimension, score=50, note=_FALLBACK_NOTES[dimension])


def failed_result(dimension: str, message: str) -> DimensionResult:
    return DimensionResult(dimension=dimension, score=0, error=message, matches=[], gaps=[])


def resume_subset(dimension: str, resume: ResumeFacts) -> Dict[str, Any]:
    if dimension in ("tasks", "workActivities"):
        return {"experience": [e.model_dump() for e in resume.experience]}
    if dimension == "skills":
        return {"skills": resume.skills.all_skills()}
    if dimension == "education":
        return {"education": [e.model_dump() for e in resume.education]}
    if dimension == "knowledge":
        areas = [e.field for e in resume.education if e.field]
        areas += resume.skills.technical + resume.skills.core
        if resume.summary:
            areas.append(resume.summary)
        return {"knowledge_areas": areas}
    if dimension == "tools":
        return {"tools": list(resume.skills.tools)}
    raise ValueError(f"Invalid dimension: {dimension}")


def occupation_subset(dimension: str, occupation: OccupationFacts) -> Dict[str, Any]:
    data = occupation.model_dump()
    if dimension == "skills":
        return {"skills": data["skills"], "technology_skills": data["technology_skills"]}
    if dimension == "education":
        return {"education": data["education"], "job_zone": data["job_zone"]}
    return {_OCCUPATION_SOURCE[dimension]: data[_OCCUPATION_SOURCE[dimension]]}


class DimensionOrchestrator:
    """Runs the six dimension judges for one resume/occupation pair.

    Dimensions run one after another in ``DIMENSIONS`` order so streamed
    updates always arrive in the same sequence. A failing judge only zeroes
    its own dimension.
    """

    def __init__(self, judges: Mapping[str, Judge], pause: float = 0.0):
        self.judges = dict(judges)
        self.pause = pause

    def _judge(self, dimension: str, resume: ResumeFacts, occupation: OccupationFacts) -> DimensionResult:
        if not getattr(occupation, _OCCUPATION_SOURCE[dimension]):
            return fallback_result(dimension)

        judge = self.judges.get(dimension)
        if judge is None:
            raise LookupError(f"No judge configured for {dimension}")

        raw = judge(resume_subset(dimension, resume), occupation_subset(dimension, occupation))
        result = raw if isinstance(raw, DimensionResult) else DimensionResult.model_validate(raw)
        if result.dimension is None:
            result.dimension = dimension
        return result

    def compare(self, dimension: str, resume: ResumeFacts, occupation: OccupationFacts) -> DimensionResult:
        """Judge a single dimension; judge errors propagate to the caller."""
        if dimension not in DIMENSIONS:
            raise ValueError(f"Invalid dimension. Valid options: {', '.join(DIMENSIONS)}")
        return self._judge(dimension, resume, occupation)

    def iter_results(self, resume: ResumeFacts,
                     occupation: OccupationFacts) -> Iterator[Tuple[str, DimensionResult]]:
        for i, dimension in enumerate(DIMENSIONS):
            try:
                result = self._judge(dimension, resume, occupation)
            except Exception as e:
                logger.exception("Failed to compare %s", dimension)
                result = failed_result(dimension, str(e))

            yield dimension, result

            if self.pause and i < len(DIMENSIONS) - 1:
                time.sleep(self.pause)

    def run_all(self, resume: ResumeFacts, occupation: OccupationFacts,
                on_result: Optional[OnResult] = None) -> Dict[str, DimensionResult]:
        results: Dict[str, DimensionResult] = {}
        for dimension, result in self.iter_results(resume, occupation):
            results[dimension] = result
            if on_result is not None:
                on_result(dimension, result)
        return results
