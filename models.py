from sqlalchemy import Column, DateTime, Float, Integer, String, Text, TypeDecorator, func
from sqlalchemy.orm import declarative_base
import json

Base = declarative_base()

class JSONType(TypeDecorator):
    """Custom JSON type that works reliably with SQLite."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Python object to JSON string for storage."""
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        """Convert JSON string back to Python object."""
        if value is None:
            return None
        return json.loads(value)


class Resume(Base):
    __tablename__ = "resumes"
    id = Column(String, primary_key=True)
    filename = Column(String, nullable=True)
    structured_data = Column(JSONType, nullable=True)  # None until the parser has run
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Occupation(Base):
    __tablename__ = "occupations"
    code = Column(String, primary_key=True)
    title = Column(String)
    profile = Column(JSONType)  # full O*NET profile
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AnalysisRecord(Base):
    __tablename__ = "analyses"
    id = Column(Integer, primary_key=True)
    resume_id = Column(String, index=True)
    occupation_code = Column(String, index=True)
    occupation_title = Column(String)
    analysis_date = Column(DateTime(timezone=True), index=True)
    overall_fit_score = Column(Float)
    fit_category = Column(JSONType)
    dimension_scores = Column(JSONType)
    score_breakdown = Column(JSONType)
    detailed_gaps = Column(JSONType)
    recommendations = Column(JSONType)
    improvement_impact = Column(JSONType)
    time_to_qualify = Column(JSONType)
    processing_time_ms = Column(Integer, default=0)
    status = Column(String, default="completed")
    error_message = Column(Text, nullable=True)
