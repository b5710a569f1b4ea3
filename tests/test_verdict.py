from decimal import Decimal

from codejudge.features.judge0.schemas import Judge0Status, JudgeResult
from codejudge.features.problems.schemas import ProblemSchema
from codejudge.features.submissions.schemas import HIDDEN_PLACEHOLDER, CustomTestCase, SubmissionStatus
from codejudge.features.submissions.verdict import aggregate, status_for, summarize_run, timed_out


def _problem(visible=2, hidden=1):
    return ProblemSchema(
        id="p1",
        title="Echo",
        difficulty="easy",
        visible_test_cases=[{"input": f"v{i}", "output": f"v{i}"} for i in range(visible)],
        hidden_test_cases=[{"input": f"h{i}", "output": f"h{i}"} for i in range(hidden)],
    )


def _res(status=Judge0Status.ACCEPTED, time="0.1", memory=1000, stdout="out", stderr=None, compile_output=None):
    return JudgeResult(
        status=status,
        time=Decimal(time),
        memory=memory,
        stdout=stdout,
        stderr=stderr,
        compile_output=compile_output,
    )


def test_visible_pass_hidden_wrong_answer():
    problem = _problem(visible=2, hidden=1)
    results = [_res(), _res(), _res(Judge0Status.WRONG_ANSWER, stdout="secret")]

    verdict = aggregate(problem, results)

    assert verdict.status is SubmissionStatus.wrong_answer
    assert verdict.passed_count == 2
    assert verdict.total_count == 3
    assert [d.index for d in verdict.details] == [0, 1, 2]
    failing = verdict.details[2]
    assert failing.is_visible is False
    assert failing.input == HIDDEN_PLACEHOLDER
    assert failing.expected_output == HIDDEN_PLACEHOLDER
    assert failing.actual_output == HIDDEN_PLACEHOLDER


def test_runtime_is_summed_and_memory_is_peak():
    problem = _problem(visible=3, hidden=0)
    results = [
        _res(time="0.1", memory=1000),
        _res(time="0.2", memory=1500),
        _res(time="0.05", memory=900),
    ]

    verdict = aggregate(problem, results)

    assert verdict.status is SubmissionStatus.accepted
    assert verdict.runtime_ms == 350
    assert verdict.runtime_seconds == 0.35
    assert verdict.memory_kb == 1500


def test_first_failure_stops_the_walk():
    problem = _problem(visible=3, hidden=2)
    results = [
        _res(),
        _res(Judge0Status.TIME_LIMIT_EXCEEDED, time="2.0"),
        _res(),
        _res(Judge0Status.WRONG_ANSWER),
        _res(),
    ]

    verdict = aggregate(problem, results)

    assert verdict.status is SubmissionStatus.time_limit_exceeded
    assert verdict.passed_count == 1
    assert max(d.index for d in verdict.details) == 1
    # The failing case does not contribute to runtime
    assert verdict.runtime_ms == 100


def test_hidden_passes_are_not_reported():
    problem = _problem(visible=1, hidden=3)
    verdict = aggregate(problem, [_res(), _res(), _res(), _res()])

    assert verdict.accepted
    assert [d.index for d in verdict.details] == [0]
    assert verdict.details[0].input == "v0"
    assert verdict.details[0].actual_output == "out"


def test_runtime_error_variants_collapse():
    for status in (
        Judge0Status.RUNTIME_ERROR_SIGSEGV,
        Judge0Status.RUNTIME_ERROR_SIGFPE,
        Judge0Status.RUNTIME_ERROR_NZEC,
        Judge0Status.RUNTIME_ERROR_OTHER,
    ):
        assert status_for(_res(status)) is SubmissionStatus.runtime_error
    assert status_for(_res(Judge0Status.EXEC_FORMAT_ERROR)) is SubmissionStatus.other_error
    assert status_for(_res(Judge0Status.INTERNAL_ERROR)) is SubmissionStatus.internal_error


def test_compilation_error_keeps_diagnostic_for_hidden_case():
    problem = _problem(visible=0, hidden=1)
    verdict = aggregate(problem, [_res(Judge0Status.COMPILATION_ERROR, compile_output="main.cpp:1: error")])

    assert verdict.status is SubmissionStatus.compilation_error
    assert verdict.error_message == "main.cpp:1: error"
    assert verdict.details[0].error_message == "main.cpp:1: error"
    assert verdict.details[0].input == HIDDEN_PLACEHOLDER


def test_zero_cases_is_vacuously_accepted():
    verdict = aggregate(_problem(visible=0, hidden=0), [])

    assert verdict.accepted
    assert verdict.passed_count == 0
    assert verdict.total_count == 0
    assert verdict.details == []


def test_timed_out_verdict():
    verdict = timed_out(_problem(visible=2, hidden=2), "poll ceiling")

    assert verdict.status is SubmissionStatus.judge_timeout
    assert verdict.total_count == 4
    assert verdict.passed_count == 0
    assert verdict.error_message == "poll ceiling"


def test_summarize_run_reports_every_case():
    problem = _problem(visible=2, hidden=5)
    custom = [CustomTestCase(input="c0", expected_output="c0")]
    results = [
        _res(time="0.3", memory=700),
        _res(Judge0Status.WRONG_ANSWER, time="0.1", memory=800, stdout="nope"),
        _res(time="0.2", memory=600, stdout="c0"),
    ]

    run = summarize_run(problem, custom, results)

    assert run.summary.all_passed is False
    assert run.summary.passed_tests == 2
    assert run.summary.total_tests == 3
    assert run.summary.default_tests == 2
    assert run.summary.custom_tests == 1
    assert run.summary.execution_time == 0.3
    assert run.summary.memory_kb == 800
    assert [r.is_custom for r in run.test_results] == [False, False, True]
    assert run.test_results[1].actual_output == "nope"
    assert run.test_results[2].expected_output == "c0"
