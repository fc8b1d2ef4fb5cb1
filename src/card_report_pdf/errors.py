"""Exception types raised while building a card report."""
from __future__ import annotations


class ReportExportError(Exception):
    """Base class for all export failures."""


class ConfigurationError(ReportExportError):
    """Zero-width bitmap, degenerate page geometry or invalid spacing."""


class GeometryError(ReportExportError):
    """A block or slice rectangle does not match its source bitmap."""


class CaptureError(ReportExportError):
    """
    A capture step failed.

    All capture failures surface as this single error; `stage` names the
    step (header, content or summary) that failed.
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Capture of {stage} failed: {type(cause).__name__}: {cause}")
        self.stage = stage
        self.cause = cause
