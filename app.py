from __future__ import annotations
import os, json, logging
from datetime import datetime
from typing import List, Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from models import Base
from schemas import (
    Analysis,
    AnalysisStatistics,
    AnalysisSummary,
    CompareDimensionIn,
    DimensionComparison,
    OccupationFacts,
    ResumeIn,
    ResumeOut,
)
from store import AnalysisStore
from analysis.cache import AnalysisCache
from analysis.errors import DimensionJudgeError, NotFoundError, PersistenceError
from analysis.gaps import top_gaps
from analysis.judge_groq import build_groq_judges
from analysis.orchestrator import DIMENSIONS, DimensionOrchestrator
from analysis.pipeline import AnalysisPipeline

load_dotenv()
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

IS_HF = os.environ.get("SPACE_ID") is not None
BASE_DIR = os.getenv("BASE_DIR", "/tmp/data" if IS_HF else "data")
CACHE_TTL_SECONDS = float(os.getenv("ANALYSIS_CACHE_TTL_SECONDS", "3600"))
FRESHNESS_SECONDS = float(os.getenv("ANALYSIS_FRESHNESS_SECONDS", "3600"))
DIMENSION_PAUSE_SECONDS = float(os.getenv("DIMENSION_PAUSE_SECONDS", "0.5"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

engine = None
Session = sessionmaker(autoflush=False)
store: Optional[AnalysisStore] = None
pipeline: Optional[AnalysisPipeline] = None


def build_pipeline(analysis_store: AnalysisStore, judges=None, pause: Optional[float] = None) -> AnalysisPipeline:
    orchestrator = DimensionOrchestrator(
        judges if judges is not None else build_groq_judges(),
        pause=DIMENSION_PAUSE_SECONDS if pause is None else pause,
    )
    return AnalysisPipeline(
        analysis_store,
        orchestrator,
        store=analysis_store,
        cache=AnalysisCache(ttl_seconds=CACHE_TTL_SECONDS),
        freshness_seconds=FRESHNESS_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the database and wire the analysis pipeline."""
    global engine, store, pipeline

    os.makedirs(BASE_DIR, exist_ok=True)
    db_url = os.getenv("DATABASE_URL") or f"sqlite:///{os.path.join(BASE_DIR, 'app.db')}"
    logger.info("Using base directory: %s", BASE_DIR)
    logger.info("Database: %s", db_url)

    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    Session.configure(bind=engine)
    Base.metadata.create_all(engine)

    store = AnalysisStore(Session)
    pipeline = build_pipeline(store)

    yield
    logger.info("Application shutting down.")
    engine.dispose()


app = FastAPI(title="Occupation Fit Analyzer (Groq Cloud)", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


def _save_quietly(analysis: Analysis) -> Analysis:
    try:
        pipeline.save(analysis)
    except PersistenceError as e:
        logger.error("Analysis computed but not saved: %s", e)
    return analysis


# -------------------------------------------------------------------
# Resumes & occupations
# -------------------------------------------------------------------
@app.post("/resumes", response_model=dict)
def create_resume(resume: ResumeIn):
    """Register a resume and (optionally) its structured data."""
    resume_id = store.save_resume(resume.structured_data, filename=resume.filename,
                                  resume_id=resume.resume_id)
    return {"resume_id": resume_id}


@app.get("/resumes/{resume_id}", response_model=ResumeOut)
def get_resume(resume_id: str):
    resume = store.get_resume(resume_id)
    if not resume:
        raise HTTPException(status_code=404, detail=f"Resume {resume_id} not found.")
    return resume


@app.put("/occupations/{code}", response_model=dict)
def put_occupation(code: str, occupation: OccupationFacts):
    """Store (or replace) the O*NET profile for one occupation."""
    occupation = occupation.model_copy(update={"code": code})
    store.save_occupation(occupation)
    return {"code": code, "title": occupation.title}


@app.get("/occupations/{code}", response_model=OccupationFacts)
def get_occupation(code: str):
    occupation = store.get_occupation_facts(code)
    if not occupation:
        raise HTTPException(status_code=404, detail=f"Occupation {code} not found.")
    return occupation


# -------------------------------------------------------------------
# Analyses
# -------------------------------------------------------------------
@app.post("/analyses/compare-dimension", response_model=DimensionComparison)
def compare_dimension(body: CompareDimensionIn):
    if body.dimension not in DIMENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid dimension. Valid options: {', '.join(DIMENSIONS)}",
        )
    try:
        return pipeline.compare_dimension(body.resume_id, body.occupation_code, body.dimension)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DimensionJudgeError as e:
        raise HTTPException(status_code=502, detail=f"Failed to compare dimension: {e}")


@app.get("/analyses/search", response_model=List[AnalysisSummary])
def search_analyses(min_score: Optional[float] = None, max_score: Optional[float] = None,
                    occupation_code: Optional[str] = None, status: Optional[str] = None,
                    start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                    limit: int = 50):
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be > 0")
    return store.search(min_score=min_score, max_score=max_score, occupation_code=occupation_code,
                        status=status, start_date=start_date, end_date=end_date, limit=limit)


@app.get("/analyses/statistics", response_model=AnalysisStatistics)
def analysis_statistics():
    return store.statistics()


@app.get("/analyses/resume/{resume_id}/top-matches", response_model=List[AnalysisSummary])
def top_matches(resume_id: str, limit: int = 10):
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be > 0")
    return store.top_matches(resume_id, limit=limit)


@app.get("/analyses/resume/{resume_id}", response_model=dict)
def resume_analyses(resume_id: str):
    analyses = store.list_for_resume(resume_id)
    return {"resume_id": resume_id, "analyses": analyses, "count": len(analyses)}


@app.get("/analyses/occupation/{occupation_code}", response_model=dict)
def occupation_analyses(occupation_code: str):
    analyses = store.list_for_occupation(occupation_code)
    return {"occupation_code": occupation_code, "analyses": analyses, "count": len(analyses)}


@app.post("/analyses/{resume_id}/{occupation_code}", response_model=Analysis)
def analyze(resume_id: str, occupation_code: str, force: bool = False):
    """Analyze a resume against an occupation.

    A recent analysis for the same pair is returned as-is unless ``force``.
    """
    if not force:
        recent = pipeline.recent(resume_id, occupation_code)
        if recent is not None:
            logger.info("Returning recent analysis for %s/%s", resume_id, occupation_code)
            return recent
    try:
        return pipeline.run(resume_id, occupation_code)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error("Analysis computed but not saved: %s", e)
        return e.analysis


@app.get("/analyses/{resume_id}/{occupation_code}/stream")
def stream_analysis(resume_id: str, occupation_code: str, force: bool = False):
    """Server-Sent Events: one dimension_update per dimension, then completed."""

    def events():
        yield _sse("connected", {"resume_id": resume_id, "occupation_code": occupation_code})

        recent = None if force else pipeline.recent(resume_id, occupation_code)
        if recent is not None:
            for dimension, scores in recent.dimension_scores.items():
                yield _sse("dimension_update", {"dimension": dimension,
                                                "scores": scores.model_dump(mode="json"),
                                                "cached": True})
            yield _sse("completed", recent.model_dump(mode="json"))
            return

        try:
            for event, payload in pipeline.iter_analysis(resume_id, occupation_code):
                if event == "dimension_update":
                    yield _sse(event, {"dimension": payload["dimension"],
                                       "scores": payload["scores"].model_dump(mode="json")})
                    continue
                if payload.status == "completed":
                    _save_quietly(payload)
                yield _sse(event, payload.model_dump(mode="json"))
        except NotFoundError as e:
            yield _sse("error", {"error": str(e)})

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.get("/analyses/{analysis_id}/recommendations", response_model=dict)
def get_recommendations(analysis_id: int):
    analysis = store.get_analysis(analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {
        "analysis_id": analysis_id,
        "occupation_title": analysis.occupation_title,
        "overall_score": analysis.overall_fit_score,
        "recommendations": analysis.recommendations,
        "gaps": analysis.gaps,
        "top_gaps": top_gaps(analysis.gaps),
        "time_to_qualify": analysis.time_to_qualify,
    }


@app.get("/analyses/{analysis_id}", response_model=Analysis)
def get_analysis(analysis_id: int):
    analysis = store.get_analysis(analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


@app.delete("/analyses/{analysis_id}", response_model=dict)
def delete_analysis(analysis_id: int):
    if not store.delete_analysis(analysis_id):
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"deleted": True, "analysis_id": analysis_id}
