"""SQL persistence for resumes, occupation profiles and analyses."""

import uuid
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from analysis.errors import PersistenceError
from models import AnalysisRecord, Occupation, Resume
from schemas import (
    Analysis,
    AnalysisStatistics,
    AnalysisSummary,
    OccupationFacts,
    ResumeFacts,
    ResumeOut,
)

logger = logging.getLogger(__name__)


def _summary(rec: AnalysisRecord) -> AnalysisSummary:
    return AnalysisSummary(
        id=rec.id,
        resume_id=rec.resume_id,
        occupation_code=rec.occupation_code,
        occupation_title=rec.occupation_title,
        overall_fit_score=rec.overall_fit_score or 0.0,
        analysis_date=rec.analysis_date,
        status=rec.status,
    )


def _analysis(rec: AnalysisRecord) -> Analysis:
    return Analysis.model_validate({
        "id": rec.id,
        "resume_id": rec.resume_id,
        "occupation_code": rec.occupation_code,
        "occupation_title": rec.occupation_title,
        "analysis_date": rec.analysis_date,
        "overall_fit_score": rec.overall_fit_score or 0.0,
        "fit_category": rec.fit_category,
        "dimension_scores": rec.dimension_scores or {},
        "score_breakdown": rec.score_breakdown or {},
        "gaps": rec.detailed_gaps or {},
        "recommendations": rec.recommendations or [],
        "improvement_impact": rec.improvement_impact or [],
        "time_to_qualify": rec.time_to_qualify or {},
        "processing_time_ms": rec.processing_time_ms or 0,
        "status": rec.status,
        "error_message": rec.error_message,
    })


class AnalysisStore:
    """Resume/occupation fact supplier and analysis sink backed by SQLAlchemy."""

    def __init__(self, session_factory):
        self.Session = session_factory

    # -------------------------------------------------------------------
    # Resumes
    # -------------------------------------------------------------------
    def save_resume(self, structured_data: Optional[ResumeFacts] = None,
                    filename: Optional[str] = None, resume_id: Optional[str] = None) -> str:
        resume_id = resume_id or uuid.uuid4().hex
        data = structured_data.model_dump(mode="json") if structured_data is not None else None
        with self.Session() as s:
            r = s.get(Resume, resume_id)
            if r is None:
                r = Resume(id=resume_id)
                s.add(r)
            if filename is not None:
                r.filename = filename
            r.structured_data = data
            s.commit()
        return resume_id

    def get_resume(self, resume_id: str) -> Optional[ResumeOut]:
        with self.Session() as s:
            r = s.get(Resume, resume_id)
            if r is None:
                return None
            return ResumeOut(
                resume_id=r.id,
                filename=r.filename,
                structured_data=r.structured_data,
                created_at=r.created_at,
            )

    def get_resume_facts(self, resume_id: str) -> Optional[ResumeFacts]:
        with self.Session() as s:
            r = s.get(Resume, resume_id)
            if r is None or not r.structured_data:
                return None
            return ResumeFacts.model_validate(r.structured_data)

    # -------------------------------------------------------------------
    # Occupations
    # -------------------------------------------------------------------
    def save_occupation(self, occupation: OccupationFacts) -> str:
        with self.Session() as s:
            o = s.get(Occupation, occupation.code)
            if o is None:
                o = Occupation(code=occupation.code)
                s.add(o)
            o.title = occupation.title
            o.profile = occupation.model_dump(mode="json")
            s.commit()
        return occupation.code

    def get_occupation_facts(self, code: str) -> Optional[OccupationFacts]:
        with self.Session() as s:
            o = s.get(Occupation, code)
            if o is None or o.profile is None:
                return None
            return OccupationFacts.model_validate(o.profile)

    # -------------------------------------------------------------------
    # Analyses
    # -------------------------------------------------------------------
    def save_analysis(self, analysis: Analysis) -> int:
        data = analysis.model_dump(mode="json")
        try:
            with self.Session() as s:
                rec = AnalysisRecord(
                    resume_id=analysis.resume_id,
                    occupation_code=analysis.occupation_code,
                    occupation_title=analysis.occupation_title,
                    analysis_date=analysis.analysis_date,
                    overall_fit_score=analysis.overall_fit_score,
                    fit_category=data["fit_category"],
                    dimension_scores=data["dimension_scores"],
                    score_breakdown=data["score_breakdown"],
                    detailed_gaps=data["gaps"],
                    recommendations=data["recommendations"],
                    improvement_impact=data["improvement_impact"],
                    time_to_qualify=data["time_to_qualify"],
                    processing_time_ms=analysis.processing_time_ms,
                    status=analysis.status,
                    error_message=analysis.error_message,
                )
                s.add(rec)
                s.commit()
                s.refresh(rec)
                return rec.id
        except SQLAlchemyError as e:
            logger.error("Error saving analysis for %s/%s: %s",
                         analysis.resume_id, analysis.occupation_code, e)
            raise PersistenceError(f"Failed to save analysis: {e}", analysis) from e

    def get_analysis(self, analysis_id: int) -> Optional[Analysis]:
        with self.Session() as s:
            rec = s.get(AnalysisRecord, analysis_id)
            return _analysis(rec) if rec else None

    def get_latest_analysis(self, resume_id: str, occupation_code: str) -> Optional[Analysis]:
        with self.Session() as s:
            rec = (
                s.query(AnalysisRecord)
                .filter(AnalysisRecord.resume_id == resume_id,
                        AnalysisRecord.occupation_code == occupation_code)
                .order_by(AnalysisRecord.analysis_date.desc(), AnalysisRecord.id.desc())
                .first()
            )
            return _analysis(rec) if rec else None

    def list_for_resume(self, resume_id: str) -> List[AnalysisSummary]:
        with self.Session() as s:
            rows = (
                s.query(AnalysisRecord)
                .filter(AnalysisRecord.resume_id == resume_id)
                .order_by(AnalysisRecord.analysis_date.desc())
                .all()
            )
            return [_summary(r) for r in rows]

    def list_for_occupation(self, occupation_code: str) -> List[AnalysisSummary]:
        with self.Session() as s:
            rows = (
                s.query(AnalysisRecord)
                .filter(AnalysisRecord.occupation_code == occupation_code)
                .order_by(AnalysisRecord.analysis_date.desc())
                .all()
            )
            return [_summary(r) for r in rows]

    def top_matches(self, resume_id: str, limit: int = 10) -> List[AnalysisSummary]:
        with self.Session() as s:
            rows = (
                s.query(AnalysisRecord)
                .filter(AnalysisRecord.resume_id == resume_id, AnalysisRecord.status == "completed")
                .order_by(AnalysisRecord.overall_fit_score.desc())
                .limit(limit)
                .all()
            )
            return [_summary(r) for r in rows]

    def search(self, min_score: Optional[float] = None, max_score: Optional[float] = None,
               occupation_code: Optional[str] = None, status: Optional[str] = None,
               start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
               limit: int = 50) -> List[AnalysisSummary]:
        with self.Session() as s:
            q = s.query(AnalysisRecord)
            if min_score is not None:
                q = q.filter(AnalysisRecord.overall_fit_score >= min_score)
            if max_score is not None:
                q = q.filter(AnalysisRecord.overall_fit_score <= max_score)
            if occupation_code:
                q = q.filter(AnalysisRecord.occupation_code == occupation_code)
            if status:
                q = q.filter(AnalysisRecord.status == status)
            if start_date is not None:
                q = q.filter(AnalysisRecord.analysis_date >= start_date)
            if end_date is not None:
                q = q.filter(AnalysisRecord.analysis_date <= end_date)
            rows = q.order_by(AnalysisRecord.analysis_date.desc()).limit(limit).all()
            return [_summary(r) for r in rows]

    def statistics(self) -> AnalysisStatistics:
        score = AnalysisRecord.overall_fit_score
        with self.Session() as s:
            row = (
                s.query(
                    func.count(AnalysisRecord.id),
                    func.avg(score),
                    func.min(score),
                    func.max(score),
                    func.count(case((score >= 70, 1))),
                    func.count(case((score < 50, 1))),
                    func.avg(AnalysisRecord.processing_time_ms),
                )
                .filter(AnalysisRecord.status == "completed")
                .one()
            )
        total, avg, low, high, good, poor, avg_ms = row
        return AnalysisStatistics(
            total=total or 0,
            average_score=avg,
            min_score=low,
            max_score=high,
            good_matches=good or 0,
            poor_matches=poor or 0,
            avg_processing_time_ms=avg_ms,
        )

    def delete_analysis(self, analysis_id: int) -> bool:
        with self.Session() as s:
            rec = s.get(AnalysisRecord, analysis_id)
            if rec is None:
                return False
            s.delete(rec)
            s.commit()
            return True
