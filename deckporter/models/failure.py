"""
Failure Explanation Envelope.

Taxonomy of import failures:
- FormatAmbiguity: resolved to the generic dialect, never surfaced
- CardResolutionFailure: downgraded to an UnresolvedCard, never aborts an import
- ImportFailure: raised when the parsing stage itself crashes
- ValidationFailure: returned as a ValidationReport, never raised

Only ImportFailure crosses the import boundary as an exception. The HTTP
layer converts it, and rejected request bodies, into an ApiResponse envelope.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Import pipeline failures
    IMPORT_FAILED = "import_failed"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    KNOWN_FAILURE = "known_failure"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel):
    """
    Failure envelope returned by import endpoints.

    Every failure is classified so that none reaches the user unexplained.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    failure: FailureDetail = Field(
        ...,
        description="Failure details",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse":
        """
        Create a known failure response.

        Use when the system knows exactly why the operation failed.
        """
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class ImportFailure(KnownError):
    """
    Raised when an unexpected exception escapes the parsing stage.

    The original exception is chained as __cause__.
    """

    def __init__(self, cause: BaseException, format_hint: str | None = None):
        self.format_hint = format_hint
        detail = f"Detected format: {format_hint}" if format_hint else None
        super().__init__(
            kind=FailureKind.IMPORT_FAILED,
            message=f"Import failed: {cause}",
            detail=detail,
            suggestion="Check that the text is a plain deck list export and try again.",
            status_code=422,
        )
