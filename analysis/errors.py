"""Exceptions raised by the analysis pipeline."""


class AnalysisError(Exception):
    """Base class for analysis failures."""


class NotFoundError(AnalysisError):
    """A resume or occupation needed for the analysis does not exist."""


class ResumeNotReady(NotFoundError):
    def __init__(self, resume_id: str):
        super().__init__(f"Resume {resume_id} not found or not processed")
        self.resume_id = resume_id


class OccupationNotFound(NotFoundError):
    def __init__(self, occupation_code: str):
        super().__init__(f"Occupation {occupation_code} not found")
        self.occupation_code = occupation_code


class DimensionJudgeError(AnalysisError):
    """The external judge could not produce a result for one dimension."""

    def __init__(self, dimension: str, message: str):
        super().__init__(f"{dimension}: {message}")
        self.dimension = dimension


class PersistenceError(AnalysisError):
    """Saving a computed analysis failed. The analysis itself is still usable."""

    def __init__(self, message: str, analysis=None):
        super().__init__(message)
        self.analysis = analysis
