from __future__ import annotations

import logging
from typing import List, Optional

from codejudge.common.deps import CurrentUser
from codejudge.common.errors import (
    AccessDeniedError,
    CompileError,
    JudgeTimeout,
    JudgeUnavailable,
    NotFoundError,
    SubmissionValidationError,
)
from codejudge.features.compiler.service import LocalCompileGate, compile_gate
from codejudge.features.judge0.languages import Language, language_id_for
from codejudge.features.judge0.schemas import TestInvocation
from codejudge.features.judge0.service import Judge0Service, judge0_service
from codejudge.features.problems.repository import ProblemsRepository, problems_repository
from codejudge.features.problems.schemas import ProblemSchema
from codejudge.features.progress.service import ProgressService, progress_service
from .lifecycle import SubmissionLifecycle, submission_lifecycle
from .repository import SubmissionsRepository, submissions_repository
from .schemas import (
    CustomTestCase,
    NotesSchema,
    NotesUpdateRequest,
    OverallResult,
    RunResult,
    SubmissionListResponse,
    SubmissionRecord,
    SubmissionResult,
    SubmissionSummary,
)
from .verdict import aggregate, summarize_run, timed_out

logger = logging.getLogger(__name__)


def _invocations(code: str, language: Language, pairs) -> List[TestInvocation]:
    language_id = language_id_for(language)
    return [
        TestInvocation(language_id=language_id, source_code=code, stdin=stdin, expected_output=expected)
        for stdin, expected in pairs
    ]


class SubmissionsService:
    """Grading pipeline: compile gate -> judge -> verdict -> persist -> progress."""

    def __init__(
        self,
        *,
        judge: Optional[Judge0Service] = None,
        gate: Optional[LocalCompileGate] = None,
        problems: Optional[ProblemsRepository] = None,
        repository: Optional[SubmissionsRepository] = None,
        lifecycle: Optional[SubmissionLifecycle] = None,
        progress: Optional[ProgressService] = None,
    ):
        self.judge = judge or judge0_service
        self.gate = gate or compile_gate
        self.problems = problems or problems_repository
        self.repo = repository or submissions_repository
        self.lifecycle = lifecycle or submission_lifecycle
        self.progress = progress or progress_service

    async def _load_problem(self, user: CurrentUser, problem_id: str) -> ProblemSchema:
        if not problem_id or not problem_id.strip():
            raise SubmissionValidationError("Problem id is required")
        problem = await self.problems.get_problem(problem_id)
        if problem is None or not problem.is_active:
            raise NotFoundError("Problem not found")
        if problem.is_premium and not user.is_premium:
            raise AccessDeniedError("Premium subscription required", is_premium=True)
        return problem

    async def _compile_or_raise(self, code: str, language: Language) -> None:
        check = await self.gate.check_compiles(code, language)
        if not check.ok:
            raise CompileError(check.diagnostic or "Compilation failed")

    @staticmethod
    def _validate_code(code: str) -> None:
        if not code or not code.strip():
            raise SubmissionValidationError("Code is required")

    async def submit(
        self,
        user: CurrentUser,
        problem_id: str,
        code: str,
        language: Language,
        notes: Optional[NotesSchema] = None,
    ) -> SubmissionResult:
        self._validate_code(code)
        problem = await self._load_problem(user, problem_id)
        await self._compile_or_raise(code, language)

        submission = await self.lifecycle.create_pending(
            user_id=user.id,
            problem_id=problem.id,
            code=code,
            language=language,
            total=problem.total_test_cases,
            notes=notes,
        )

        pairs = [(c.input, c.output) for c in problem.visible_test_cases]
        pairs += [(c.input, c.output) for c in problem.hidden_test_cases]
        try:
            results = await self.judge.execute(_invocations(code, language, pairs))
        except JudgeTimeout as exc:
            verdict = timed_out(problem, exc.message)
        else:
            if len(results) != len(pairs):
                raise JudgeUnavailable("Judge returned a different number of results than cases")
            verdict = aggregate(problem, results)

        record = await self.lifecycle.finalize(submission, verdict)

        progress = None
        if verdict.accepted:
            progress = await self.progress.on_accepted(user.id, problem.id, problem.difficulty)

        return SubmissionResult(
            submission_id=record.id,
            problem_id=problem.id,
            language=language,
            status=verdict.status,
            overall=OverallResult(
                status=verdict.status,
                passed=verdict.accepted,
                passed_tests=verdict.passed_count,
                total_tests=verdict.total_count,
                visible_tests=verdict.visible_count,
                hidden_tests=verdict.hidden_count,
                execution_time_ms=verdict.runtime_ms,
                memory_kb=verdict.memory_kb,
            ),
            test_details=verdict.details,
            error_message=verdict.error_message,
            submitted_at=record.created_at,
            progress=progress,
        )

    async def run(
        self,
        user: CurrentUser,
        problem_id: str,
        code: str,
        language: Language,
        custom_test_cases: Optional[List[CustomTestCase]] = None,
    ) -> RunResult:
        self._validate_code(code)
        problem = await self._load_problem(user, problem_id)
        await self._compile_or_raise(code, language)

        custom = list(custom_test_cases or [])
        pairs = [(c.input, c.output) for c in problem.visible_test_cases]
        pairs += [(c.input, c.expected_output) for c in custom]
        results = await self.judge.execute(_invocations(code, language, pairs))
        if len(results) != len(pairs):
            raise JudgeUnavailable("Judge returned a different number of results than cases")
        logger.info("submissions.run user=%s problem=%s cases=%d", user.id, problem.id, len(pairs))
        return summarize_run(problem, custom, results)

    async def _owned_submission(self, user: CurrentUser, submission_id: str) -> SubmissionRecord:
        record = await self.repo.get(submission_id)
        if record is None:
            raise NotFoundError("Submission not found")
        if record.user_id != user.id:
            raise AccessDeniedError("This submission does not belong to you")
        return record

    async def list_for_problem(self, user: CurrentUser, problem_id: str) -> SubmissionListResponse:
        problem = await self.problems.get_problem(problem_id)
        if problem is None:
            raise NotFoundError("Problem not found")
        records = await self.repo.list_for_user_problem(user.id, problem_id)
        return SubmissionListResponse(
            problem_id=problem_id,
            submissions=[
                SubmissionSummary(
                    id=r.id,
                    status=r.status,
                    language=r.language,
                    runtime_ms=r.runtime_ms,
                    memory_kb=r.memory_kb,
                    notes=r.notes,
                    submitted_at=r.created_at,
                )
                for r in records
            ],
            total_submissions=len(records),
        )

    async def get_details(self, user: CurrentUser, submission_id: str) -> SubmissionRecord:
        return await self._owned_submission(user, submission_id)

    async def update_notes(self, user: CurrentUser, submission_id: str, req: NotesUpdateRequest) -> NotesSchema:
        if req.time_taken is not None and req.time_taken < 0:
            raise SubmissionValidationError("time_taken must be a non-negative number")
        record = await self._owned_submission(user, submission_id)
        fields = {}
        if req.text is not None:
            fields["notes_text"] = req.text
        if req.time_taken is not None:
            fields["notes_time_taken"] = req.time_taken
        if not fields:
            return record.notes
        updated = await self.repo.update_notes(record.id, fields)
        if updated is None:
            raise NotFoundError("Submission not found")
        return updated.notes


submissions_service = SubmissionsService()
