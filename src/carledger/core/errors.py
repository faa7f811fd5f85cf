"""Application errors and the JSON body they render to."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Period key or record ID involved")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class ValidationError(AppError):
    """Out-of-range period keys, inverted date ranges, edits to sale amounts."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("VALIDATION_ERROR", message, status_code=422, details=details)


class NotFoundError(AppError):
    """A sale, finance record or report row that does not exist.

    ``key`` is the record ID for facts and the period (``2025-07-14``,
    ``2025-07``, ``2025``) for reports.
    """

    def __init__(self, resource: str, key: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} {key} not found",
            status_code=404,
            details={"resource": resource, "key": key},
        )


class ReportError(AppError):
    """Base for failures inside the report engine."""

    code = "REPORT_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(type(self).code, message, type(self).status_code, details)


class FactLookupError(ReportError):
    """Raised when sales or finance records cannot be read.

    No report can be produced without facts, so this propagates to the caller
    of a top-level command instead of being skipped per period.
    """

    code = "FACT_LOOKUP_ERROR"
    status_code = 503


class AggregationError(ReportError):
    """Raised when fact data cannot be summarized (malformed amounts, unknown types)."""

    code = "AGGREGATION_ERROR"


class ReportStoreError(ReportError):
    """Raised when a report row cannot be written or removed."""

    code = "REPORT_STORE_ERROR"
