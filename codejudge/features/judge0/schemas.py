from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class Judge0Status(IntEnum):
    IN_QUEUE = 1
    PROCESSING = 2
    ACCEPTED = 3
    WRONG_ANSWER = 4
    TIME_LIMIT_EXCEEDED = 5
    COMPILATION_ERROR = 6
    RUNTIME_ERROR_SIGSEGV = 7
    RUNTIME_ERROR_SIGXFSZ = 8
    RUNTIME_ERROR_SIGFPE = 9
    RUNTIME_ERROR_SIGABRT = 10
    RUNTIME_ERROR_NZEC = 11
    RUNTIME_ERROR_OTHER = 12
    INTERNAL_ERROR = 13
    EXEC_FORMAT_ERROR = 14

    @property
    def is_terminal(self) -> bool:
        return self not in (Judge0Status.IN_QUEUE, Judge0Status.PROCESSING)

    @property
    def is_runtime_error(self) -> bool:
        return Judge0Status.RUNTIME_ERROR_SIGSEGV <= self <= Judge0Status.RUNTIME_ERROR_OTHER

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    Judge0Status.IN_QUEUE: "In Queue",
    Judge0Status.PROCESSING: "Processing",
    Judge0Status.ACCEPTED: "Accepted",
    Judge0Status.WRONG_ANSWER: "Wrong Answer",
    Judge0Status.TIME_LIMIT_EXCEEDED: "Time Limit Exceeded",
    Judge0Status.COMPILATION_ERROR: "Compilation Error",
    Judge0Status.RUNTIME_ERROR_SIGSEGV: "Runtime Error (SIGSEGV)",
    Judge0Status.RUNTIME_ERROR_SIGXFSZ: "Runtime Error (SIGXFSZ)",
    Judge0Status.RUNTIME_ERROR_SIGFPE: "Runtime Error (SIGFPE)",
    Judge0Status.RUNTIME_ERROR_SIGABRT: "Runtime Error (SIGABRT)",
    Judge0Status.RUNTIME_ERROR_NZEC: "Runtime Error (NZEC)",
    Judge0Status.RUNTIME_ERROR_OTHER: "Runtime Error (Other)",
    Judge0Status.INTERNAL_ERROR: "Internal Error",
    Judge0Status.EXEC_FORMAT_ERROR: "Exec Format Error",
}


class TestInvocation(BaseModel):
    """One (code, language, stdin, expected-output) tuple sent to the sandbox."""

    language_id: int
    source_code: str
    stdin: str = ""
    expected_output: Optional[str] = None


class Judge0SubmissionRequest(BaseModel):
    source_code: str
    language_id: int
    stdin: Optional[str] = None
    expected_output: Optional[str] = None


class JudgeResult(BaseModel):
    """Terminal (or in-flight) result for one token, translated at the boundary."""

    token: Optional[str] = None
    status: Judge0Status
    time: Decimal = Decimal("0")
    memory: int = 0
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == Judge0Status.ACCEPTED

    @property
    def diagnostic(self) -> str:
        for text in (self.stderr, self.compile_output, self.message):
            if text:
                return text
        return ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "JudgeResult":
        """Build from a raw Judge0 submission dict.

        Raises ValueError for a missing or unknown status id.
        """
        status_val = payload.get("status")
        status_id = None
        if isinstance(status_val, dict):
            status_id = status_val.get("id")
        if status_id is None:
            status_id = payload.get("status_id")
        if status_id is None:
            raise ValueError("judge result missing status")
        status = Judge0Status(int(status_id))

        raw_time = payload.get("time")
        try:
            time_val = Decimal(str(raw_time)) if raw_time not in (None, "") else Decimal("0")
        except InvalidOperation:
            raise ValueError(f"judge result has malformed time {raw_time!r}")
        raw_memory = payload.get("memory")
        memory_val = int(raw_memory) if raw_memory not in (None, "") else 0

        return cls(
            token=payload.get("token"),
            status=status,
            time=time_val,
            memory=memory_val,
            stdout=payload.get("stdout"),
            stderr=payload.get("stderr"),
            compile_output=payload.get("compile_output"),
            message=payload.get("message"),
        )
