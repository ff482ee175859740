from __future__ import annotations


class DocumentExtractionError(ValueError):
    """Base class for resume documents that cannot be turned into usable text."""


class UnsupportedKind(DocumentExtractionError):
    pass


class ExtractionFailed(DocumentExtractionError):
    pass


class ContentImplausible(DocumentExtractionError):
    pass


class ScoringUnavailable(RuntimeError):
    """A single judge attempt failed. Never leaves the fit scorer."""


class NotificationFailed(RuntimeError):
    pass


class PipelineError(RuntimeError):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class ResumeUnreadable(PipelineError):
    def __init__(self, message: str = "Resume is unreadable. Please upload a text-based PDF, DOCX or TXT resume."):
        super().__init__(message, status_code=400)


class JobNotFound(PipelineError):
    def __init__(self, message: str = "Job not found"):
        super().__init__(message, status_code=404)


class ApplicationNotFound(PipelineError):
    def __init__(self, message: str = "Application not found"):
        super().__init__(message, status_code=404)


class CandidateNotFound(PipelineError):
    def __init__(self, message: str = "Candidate not found"):
        super().__init__(message, status_code=404)


class ProcessingFailed(PipelineError):
    def __init__(self, message: str = "Failed to process resume"):
        super().__init__(message, status_code=500)
