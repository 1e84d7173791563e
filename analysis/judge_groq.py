import os, re, json, logging
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv
from pydantic.alias_generators import to_camel

from . import prompts
from .errors import DimensionJudgeError

load_dotenv()
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
MODEL_NAME = os.getenv("MODEL_NAME", "llama-3.3-70b-versatile")
GROQ_API_URL = os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
JUDGE_TIMEOUT_SECONDS = float(os.getenv("JUDGE_TIMEOUT_SECONDS", "60"))

logger = logging.getLogger(__name__)

DIMENSION_IMPORTANCE = {
    "tasks": "high",
    "skills": "high",
    "education": "medium",
    "workActivities": "medium",
    "knowledge": "low",
    "tools": "medium",
}
MAX_TOKENS = {"education": 800, "tools": 800}
EDUCATION_DEFAULTS = {"meets_requirements": False, "education_level": "Unknown", "required_level": "Unknown"}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def strip_markdown_json(text: str) -> str:
    """Remove a ```json ... ``` wrapper some models add around their answer."""
    return _FENCE_RE.sub("", text.strip()).strip()


def _join(items: List[str], empty: str = "None listed") -> str:
    items = [i for i in items if i]
    return ", ".join(items) if items else empty


def _experience_text(experience: List[Dict[str, Any]], with_titles: bool = True) -> str:
    lines = []
    for exp in experience:
        detail = ", ".join((exp.get("responsibilities") or []) + (exp.get("achievements") or []))
        if with_titles:
            lines.append(f"{exp.get('role') or 'Role'} at {exp.get('company') or 'Company'}: {detail}")
        else:
            lines.append(detail)
    return "\n".join(lines) or "No experience listed"


def _important(elements: List[Dict[str, Any]]) -> str:
    # unrated elements are kept, rated ones must clear the midpoint
    rows = [e for e in elements if e.get("importance") is None or e["importance"] > 50]
    return "\n".join(
        f"{e['name']}: {e['description']}" if e.get("description") else e["name"] for e in rows
    )


def build_prompt(dimension: str, resume: Dict[str, Any], occupation: Dict[str, Any]) -> str:
    if dimension == "tasks":
        return prompts.TASKS_TEMPLATE.format(
            experience=_experience_text(resume.get("experience", [])),
            tasks="\n".join(t["text"] for t in occupation.get("tasks", [])),
        )
    if dimension == "skills":
        tech = [f"{t['name']} (hot)" if t.get("hot") else t["name"]
                for t in occupation.get("technology_skills", [])]
        return prompts.SKILLS_TEMPLATE.format(
            resume_skills=_join(resume.get("skills", [])),
            skills=_join([s["name"] for s in occupation.get("skills", [])]),
            technology_skills=_join(tech),
        )
    if dimension == "education":
        education = [
            f"{e.get('degree') or 'Degree'} in {e.get('field') or 'unspecified field'} "
            f"from {e.get('institution') or 'unknown institution'}"
            for e in resume.get("education", [])
        ]
        zone = occupation.get("job_zone")
        return prompts.EDUCATION_TEMPLATE.format(
            education=_join(education, "No formal education listed"),
            requirements=_join([f"{e['category']}: {e['percentage']}%"
                                for e in occupation.get("education", [])]),
            job_zone=(f"Job Zone {zone.get('job_zone')}: {zone.get('education_needed')}"
                      if zone else "No specific job zone information"),
        )
    if dimension == "workActivities":
        return prompts.WORK_ACTIVITIES_TEMPLATE.format(
            experience=_experience_text(resume.get("experience", []), with_titles=False),
            activities=_important(occupation.get("work_activities", [])),
        )
    if dimension == "knowledge":
        return prompts.KNOWLEDGE_TEMPLATE.format(
            knowledge_areas=_join(resume.get("knowledge_areas", [])),
            knowledge=_important(occupation.get("knowledge", [])),
        )
    if dimension == "tools":
        return prompts.TOOLS_TEMPLATE.format(
            resume_tools=_join(resume.get("tools", []), "No specific tools listed"),
            tools=_join([t["name"] for t in occupation.get("tools", [])]),
        )
    raise ValueError(f"Unknown dimension: {dimension}")


class GroqDimensionJudge:
    """Judge one dimension with a Groq-hosted chat model.

    Returns the model's JSON verbatim plus ``dimension``/``importance``
    defaults. Any transport or parsing problem raises DimensionJudgeError so
    the orchestrator can isolate it.
    """

    def __init__(self, dimension: str, api_key: Optional[str] = None, model: Optional[str] = None,
                 url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        if dimension not in prompts.SYSTEM_PROMPTS:
            raise ValueError(f"Unknown dimension: {dimension}")
        self.dimension = dimension
        self.api_key = api_key or GROQ_API_KEY
        self.model = model or MODEL_NAME
        self.url = url or GROQ_API_URL
        self.timeout = timeout or JUDGE_TIMEOUT_SECONDS
        self.http = session or requests

    def __call__(self, resume_subset: Dict[str, Any], occupation_subset: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise DimensionJudgeError(self.dimension, "GROQ_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompts.SYSTEM_PROMPTS[self.dimension]},
                {"role": "user", "content": build_prompt(self.dimension, resume_subset, occupation_subset)},
            ],
            "temperature": 0.3,
            "max_tokens": MAX_TOKENS.get(self.dimension, 1000),
            "response_format": {"type": "json_object"},
        }

        try:
            response = self.http.post(self.url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            raw = response.json()["choices"][0]["message"]["content"]
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            raise DimensionJudgeError(self.dimension, f"Groq API error: {e}") from e

        if isinstance(raw, str):
            try:
                parsed = json.loads(strip_markdown_json(raw))
            except json.JSONDecodeError as e:
                raise DimensionJudgeError(self.dimension, f"invalid JSON from model: {e}") from e
        else:
            parsed = raw
        if not isinstance(parsed, dict):
            raise DimensionJudgeError(self.dimension, "model did not return a JSON object")

        parsed["dimension"] = self.dimension
        parsed.setdefault("importance", DIMENSION_IMPORTANCE[self.dimension])
        if self.dimension == "education":
            for key, default in EDUCATION_DEFAULTS.items():
                if key not in parsed and to_camel(key) not in parsed:
                    parsed[key] = default
        logger.debug("Groq judged %s: score=%s", self.dimension, parsed.get("score"))
        return parsed


def build_groq_judges(**kwargs) -> Dict[str, GroqDimensionJudge]:
    return {dimension: GroqDimensionJudge(dimension, **kwargs) for dimension in prompts.SYSTEM_PROMPTS}
