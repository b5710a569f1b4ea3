"""Verdict aggregation.

Results arrive ordered as [visible..., hidden...]. The walk stops at the first
non-accepted result: later cases are neither counted nor reported.
Runtime is the sum over accepted cases, memory the peak.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

from codejudge.features.judge0.schemas import Judge0Status, JudgeResult
from codejudge.features.problems.schemas import ProblemSchema
from .schemas import (
    HIDDEN_PLACEHOLDER,
    CustomTestCase,
    RunCaseResult,
    RunResult,
    RunSummary,
    SubmissionStatus,
    TestCaseDetail,
    Verdict,
)

_FAILURE_STATUS = {
    Judge0Status.WRONG_ANSWER: SubmissionStatus.wrong_answer,
    Judge0Status.TIME_LIMIT_EXCEEDED: SubmissionStatus.time_limit_exceeded,
    Judge0Status.COMPILATION_ERROR: SubmissionStatus.compilation_error,
    Judge0Status.INTERNAL_ERROR: SubmissionStatus.internal_error,
    Judge0Status.EXEC_FORMAT_ERROR: SubmissionStatus.other_error,
}


def status_for(result: JudgeResult) -> SubmissionStatus:
    if result.accepted:
        return SubmissionStatus.accepted
    if result.status.is_runtime_error:
        return SubmissionStatus.runtime_error
    return _FAILURE_STATUS.get(result.status, SubmissionStatus.other_error)


def _to_ms(seconds: Decimal) -> int:
    return int((seconds * 1000).to_integral_value())


def _detail(index: int, result: JudgeResult, problem: ProblemSchema) -> TestCaseDetail:
    visible = index < len(problem.visible_test_cases)
    detail = TestCaseDetail(
        index=index,
        passed=result.accepted,
        status_id=int(result.status),
        status=result.status.description,
        execution_time=float(result.time),
        memory_kb=result.memory,
        is_visible=visible,
        error_message=result.diagnostic,
    )
    if visible:
        case = problem.visible_test_cases[index]
        detail.input = case.input
        detail.expected_output = case.output
        detail.actual_output = result.stdout or ""
    else:
        detail.input = HIDDEN_PLACEHOLDER
        detail.expected_output = HIDDEN_PLACEHOLDER
        detail.actual_output = HIDDEN_PLACEHOLDER
    return detail


def aggregate(problem: ProblemSchema, results: Sequence[JudgeResult]) -> Verdict:
    visible_count = len(problem.visible_test_cases)
    hidden_count = len(problem.hidden_test_cases)

    status = SubmissionStatus.accepted
    passed = 0
    runtime = Decimal("0")
    memory = 0
    error_message = ""
    details: List[TestCaseDetail] = []

    for index, result in enumerate(results):
        if result.accepted:
            passed += 1
            runtime += result.time
            memory = max(memory, result.memory)
            if index < visible_count:
                details.append(_detail(index, result, problem))
            continue

        status = status_for(result)
        error_message = result.diagnostic
        details.append(_detail(index, result, problem))
        break

    return Verdict(
        status=status,
        passed_count=passed,
        total_count=visible_count + hidden_count,
        visible_count=visible_count,
        hidden_count=hidden_count,
        runtime_seconds=float(runtime),
        runtime_ms=_to_ms(runtime),
        memory_kb=memory,
        error_message=error_message,
        details=details,
    )


def timed_out(problem: ProblemSchema, message: str) -> Verdict:
    return Verdict(
        status=SubmissionStatus.judge_timeout,
        total_count=problem.total_test_cases,
        visible_count=len(problem.visible_test_cases),
        hidden_count=len(problem.hidden_test_cases),
        error_message=message,
    )


def summarize_run(
    problem: ProblemSchema,
    custom_cases: Sequence[CustomTestCase],
    results: Sequence[JudgeResult],
) -> RunResult:
    """Report every case of a run (visible then custom); nothing short-circuits."""
    cases = [(c.input, c.output, False) for c in problem.visible_test_cases]
    cases += [(c.input, c.expected_output, True) for c in custom_cases]

    rows: List[RunCaseResult] = []
    for index, ((stdin, expected, is_custom), result) in enumerate(zip(cases, results)):
        rows.append(RunCaseResult(
            index=index,
            input=stdin,
            expected_output=expected,
            actual_output=result.stdout or "",
            passed=result.accepted,
            status_id=int(result.status),
            status=result.status.description,
            execution_time=float(result.time),
            memory_kb=result.memory,
            error_message=result.diagnostic,
            is_custom=is_custom,
        ))

    passed = sum(1 for r in rows if r.passed)
    return RunResult(
        summary=RunSummary(
            all_passed=passed == len(rows),
            passed_tests=passed,
            total_tests=len(rows),
            default_tests=sum(1 for r in rows if not r.is_custom),
            custom_tests=sum(1 for r in rows if r.is_custom),
            execution_time=max((r.execution_time for r in rows), default=0.0),
            memory_kb=max((r.memory_kb for r in rows), default=0),
        ),
        test_results=rows,
    )
