from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from codejudge.common.deps import CurrentUser, get_current_user
from codejudge.common.errors import GradingError
from .schemas import (
    NotesResponse,
    NotesUpdateRequest,
    RunRequest,
    RunResult,
    SubmissionDetailResponse,
    SubmissionListResponse,
    SubmissionResult,
    SubmitRequest,
)
from .service import submissions_service

logger = logging.getLogger("submissions")

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _http_error(exc: GradingError) -> HTTPException:
    if exc.status_code >= 500:
        logger.error("submissions.request_failed code=%s message=%s", exc.code, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


@router.post(
    "/problems/{problem_id}/submit",
    response_model=SubmissionResult,
    summary="Grade source code against every test case of a problem",
    description=(
        "Runs the local compile gate, then every visible and hidden test case in the sandbox. "
        "The attempt is recorded and, on a first acceptance, the user's solved set, streak and "
        "badges are updated."
    ),
)
async def submit_solution(
    problem_id: str,
    payload: SubmitRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await submissions_service.submit(
            current_user, problem_id, payload.code, payload.language, notes=payload.notes
        )
    except GradingError as exc:
        raise _http_error(exc)


@router.post(
    "/problems/{problem_id}/run",
    response_model=RunResult,
    summary="Run code against visible and custom test cases without recording",
)
async def run_solution(
    problem_id: str,
    payload: RunRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await submissions_service.run(
            current_user, problem_id, payload.code, payload.language, payload.custom_test_cases
        )
    except GradingError as exc:
        raise _http_error(exc)


@router.get(
    "/problems/{problem_id}",
    response_model=SubmissionListResponse,
    summary="List the caller's submissions for a problem, newest first",
)
async def list_problem_submissions(problem_id: str, current_user: CurrentUser = Depends(get_current_user)):
    try:
        return await submissions_service.list_for_problem(current_user, problem_id)
    except GradingError as exc:
        raise _http_error(exc)


@router.get(
    "/{submission_id}",
    response_model=SubmissionDetailResponse,
    summary="Fetch one of the caller's submissions including its code",
)
async def get_submission(submission_id: str, current_user: CurrentUser = Depends(get_current_user)):
    try:
        record = await submissions_service.get_details(current_user, submission_id)
    except GradingError as exc:
        raise _http_error(exc)
    return SubmissionDetailResponse(submission=record)


@router.post(
    "/{submission_id}/notes",
    response_model=NotesResponse,
    summary="Update the personal notes attached to a submission",
)
async def update_submission_notes(
    submission_id: str,
    payload: NotesUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        notes = await submissions_service.update_notes(current_user, submission_id, payload)
    except GradingError as exc:
        raise _http_error(exc)
    return NotesResponse(submission_id=submission_id, notes=notes)
