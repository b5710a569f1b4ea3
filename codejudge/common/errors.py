"""Error taxonomy for the grading pipeline.

Every failure that aborts a request is a ``GradingError``. Non-accepted
verdicts (wrong answer, time limit, ...) are results, not errors, and never
appear here.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GradingError(Exception):
    status_code: int = 500
    code: str = "grading_error"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.code
        self.extra = extra
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        detail.update(self.extra)
        return detail


class SubmissionValidationError(GradingError):
    status_code = 400
    code = "validation_error"


class CompileError(GradingError):
    status_code = 400
    code = "compilation_error"

    def __init__(self, diagnostic: str) -> None:
        super().__init__("Compilation Error", diagnostic=diagnostic)
        self.diagnostic = diagnostic


class AccessDeniedError(GradingError):
    status_code = 403
    code = "access_denied"


class NotFoundError(GradingError):
    status_code = 404
    code = "not_found"


class SubmissionAlreadyFinalized(GradingError):
    status_code = 409
    code = "submission_already_finalized"


class JudgeUnavailable(GradingError):
    status_code = 503
    code = "judge_unavailable"


class JudgeTimeout(GradingError):
    status_code = 504
    code = "judge_timeout"


class PersistenceError(GradingError):
    status_code = 500
    code = "persistence_error"


__all__ = [
    "GradingError",
    "SubmissionValidationError",
    "CompileError",
    "AccessDeniedError",
    "NotFoundError",
    "SubmissionAlreadyFinalized",
    "JudgeUnavailable",
    "JudgeTimeout",
    "PersistenceError",
]
