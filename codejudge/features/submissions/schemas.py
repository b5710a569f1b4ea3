from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from codejudge.features.judge0.languages import Language
from codejudge.features.progress.schemas import UpdateSummary

HIDDEN_PLACEHOLDER = "[Hidden]"


class SubmissionStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    wrong_answer = "wrong_answer"
    time_limit_exceeded = "time_limit_exceeded"
    compilation_error = "compilation_error"
    runtime_error = "runtime_error"
    internal_error = "internal_error"
    other_error = "other_error"
    judge_timeout = "judge_timeout"

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.pending


class NotesSchema(BaseModel):
    time_taken: float = Field(default=0, ge=0)
    text: str = ""


# ---- Requests --------------------------------------------------------------

class _CodeRequest(BaseModel):
    code: str
    language: Language

    @field_validator("language", mode="before")
    @classmethod
    def _lower_language(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("code")
    @classmethod
    def _code_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("code must not be empty")
        return value


class SubmitRequest(_CodeRequest):
    notes: Optional[NotesSchema] = None


class CustomTestCase(BaseModel):
    input: str = ""
    expected_output: str


class RunRequest(_CodeRequest):
    custom_test_cases: List[CustomTestCase] = Field(default_factory=list)


class NotesUpdateRequest(BaseModel):
    text: Optional[str] = None
    time_taken: Optional[float] = None


# ---- Grading ---------------------------------------------------------------

class TestCaseDetail(BaseModel):
    index: int
    passed: bool
    status_id: int
    status: str
    execution_time: float = 0.0
    memory_kb: int = 0
    is_visible: bool
    input: Optional[str] = None
    expected_output: Optional[str] = None
    actual_output: Optional[str] = None
    error_message: Optional[str] = None


class Verdict(BaseModel):
    status: SubmissionStatus
    passed_count: int = 0
    total_count: int = 0
    visible_count: int = 0
    hidden_count: int = 0
    runtime_seconds: float = 0.0
    runtime_ms: int = 0
    memory_kb: int = 0
    error_message: str = ""
    details: List[TestCaseDetail] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.status is SubmissionStatus.accepted


class SubmissionRecord(BaseModel):
    id: str
    user_id: str
    problem_id: str
    code: str
    language: Language
    status: SubmissionStatus = SubmissionStatus.pending
    runtime_ms: int = 0
    runtime_seconds: float = 0.0
    memory_kb: int = 0
    tests_passed: int = 0
    tests_total: int = 0
    error_message: str = ""
    notes: NotesSchema = Field(default_factory=NotesSchema)
    created_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None


# ---- Responses -------------------------------------------------------------

class OverallResult(BaseModel):
    status: SubmissionStatus
    passed: bool
    passed_tests: int
    total_tests: int
    visible_tests: int
    hidden_tests: int
    execution_time_ms: int
    memory_kb: int


class SubmissionResult(BaseModel):
    submission_id: str
    problem_id: str
    language: Language
    status: SubmissionStatus
    overall: OverallResult
    test_details: List[TestCaseDetail] = Field(default_factory=list)
    error_message: str = ""
    submitted_at: Optional[datetime] = None
    progress: Optional[UpdateSummary] = None


class RunCaseResult(BaseModel):
    index: int
    input: str
    expected_output: Optional[str] = None
    actual_output: str = ""
    passed: bool
    status_id: int
    status: str
    execution_time: float = 0.0
    memory_kb: int = 0
    error_message: str = ""
    is_custom: bool = False


class RunSummary(BaseModel):
    all_passed: bool
    passed_tests: int
    total_tests: int
    default_tests: int
    custom_tests: int
    execution_time: float
    memory_kb: int


class RunResult(BaseModel):
    summary: RunSummary
    test_results: List[RunCaseResult] = Field(default_factory=list)


class SubmissionSummary(BaseModel):
    id: str
    status: SubmissionStatus
    language: Language
    runtime_ms: int = 0
    memory_kb: int = 0
    notes: NotesSchema = Field(default_factory=NotesSchema)
    submitted_at: Optional[datetime] = None


class SubmissionListResponse(BaseModel):
    problem_id: str
    submissions: List[SubmissionSummary] = Field(default_factory=list)
    total_submissions: int = 0


class SubmissionDetailResponse(BaseModel):
    submission: SubmissionRecord


class NotesResponse(BaseModel):
    submission_id: str
    notes: NotesSchema
