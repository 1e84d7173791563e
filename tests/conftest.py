"""Shared fixtures: fake dimension judges, sample facts and a throwaway SQLite store."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from analysis.orchestrator import DIMENSIONS
from models import Base
from schemas import OccupationFacts, ResumeFacts
from store import AnalysisStore


class FakeJudge:
    """Callable stand-in for a Groq judge that records its inputs."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {
            "score": 70, "matches": ["something"], "gaps": [], "confidence": "high",
        }
        self.error = error
        self.calls = []

    def __call__(self, resume_subset, occupation_subset):
        self.calls.append((resume_subset, occupation_subset))
        if self.error is not None:
            raise self.error
        return dict(self.result)


@pytest.fixture
def make_judges():
    """Build a full judge set; keyword overrides replace single dimensions."""

    def _make(**overrides):
        judges = {d: FakeJudge() for d in DIMENSIONS}
        judges.update(overrides)
        return judges

    return _make


@pytest.fixture
def resume():
    return ResumeFacts.model_validate({
        "experience": [{
            "company": "Acme",
            "role": "Backend Developer",
            "responsibilities": ["Built REST APIs", "Code review for the team"],
            "achievements": ["Cut latency by 40%"],
        }],
        "skills": {
            "technical": ["Python", "SQL"],
            "soft": ["Communication"],
            "tools": ["Docker", "Git"],
            "languages": {"spoken": ["English"], "programming": ["Python", "Go"]},
        },
        "education": [{"degree": "BSc", "field": "Computer Science", "institution": "State U"}],
        "summary": "Backend engineer",
    })


@pytest.fixture
def empty_resume():
    return ResumeFacts.model_validate({
        "experience": [],
        "skills": {"technical": [], "soft": [], "tools": [], "languages": []},
        "education": [],
    })


@pytest.fixture
def occupation():
    return OccupationFacts.model_validate({
        "code": "15-1252.00",
        "title": "Software Developers",
        "tasks": [
            {"text": "Perform code review of changes", "importance": 90},
            {"text": "Write technical documentation", "importance": 55},
        ],
        "skills": [
            {"name": "Programming", "importance": 85, "description": "Writing computer programs"},
            {"name": "Critical Thinking", "importance": 70},
        ],
        "technology_skills": [{"name": "Python", "hot": True}],
        "tools": [{"name": "Docker"}],
        "work_activities": [{"name": "Working with Computers", "importance": 95}],
        "knowledge": [{"name": "Computers and Electronics", "importance": 88}],
        "education": [{"category": "Bachelor's degree", "percentage": 67}],
        "job_zone": {"job_zone": 4, "education_needed": "Most require a four-year bachelor's degree"},
    })


@pytest.fixture
def sparse_occupation():
    """Only tasks and skills are rated; every other dimension has no data."""
    return OccupationFacts.model_validate({
        "code": "15-1252.00",
        "title": "Software Developers",
        "tasks": [{"text": "Code review", "importance": 90}],
        "skills": [{"name": "Python", "importance": 85}],
    })


@pytest.fixture
def store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield AnalysisStore(sessionmaker(bind=engine, autoflush=False))
    engine.dispose()
