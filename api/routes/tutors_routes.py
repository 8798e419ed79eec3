"""Tutor CRUD and search endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from starlette import status

from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from schemas import ErrorResponse, TutorRequest, TutorResponse
from services.tutors_service import (
    DuplicateEmail,
    InvalidInput,
    NotFound,
    TutorData,
    TutorFailure,
    TutorInput,
    TutorService,
)

router = APIRouter(prefix="/api/tutors", tags=["tutors"])


def get_tutor_service(request: Request) -> TutorService:
    """The single TutorService built at startup."""
    return request.app.state.tutor_service


TutorServiceDep = Annotated[TutorService, Depends(get_tutor_service)]


def _to_tutor_input(body: TutorRequest) -> TutorInput:
    return TutorInput(
        name=body.name,
        email=body.email,
        phone=body.phone,
        subject=body.subject,
        bio=body.bio,
    )


def _to_tutor_response(tutor: TutorData) -> TutorResponse:
    return TutorResponse(
        id=tutor.id,
        name=tutor.name,
        email=tutor.email,
        phone=tutor.phone,
        subject=tutor.subject,
        bio=tutor.bio,
        created_at=tutor.created_at,
        updated_at=tutor.updated_at,
    )


def _failure_response(failure: TutorFailure) -> JSONResponse:
    match failure:
        case InvalidInput(field=field):
            body = ErrorResponse(
                detail=failure.message, error="invalid_input", field=field
            )
            status_code = 422
        case NotFound(tutor_id=tutor_id):
            body = ErrorResponse(
                detail=failure.message, error="not_found", tutor_id=tutor_id
            )
            status_code = 404
        case DuplicateEmail(email=email):
            body = ErrorResponse(
                detail=failure.message, error="duplicate_email", email=email
            )
            status_code = 409
        case _:
            raise ValueError(f"Unknown failure: {failure!r}")

    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


_FAILURE_RESPONSES: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "Tutor not found"},
    409: {"model": ErrorResponse, "description": "Email already exists"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}


@router.get("", response_model=list[TutorResponse])
@limiter.limit(READ_LIMIT)
async def list_tutors(
    request: Request, service: TutorServiceDep
) -> list[TutorResponse]:
    """List all tutors."""
    tutors = await service.list_all()
    return [_to_tutor_response(t) for t in tutors]


@router.get("/search", response_model=list[TutorResponse])
@limiter.limit(READ_LIMIT)
async def search_tutors(
    request: Request,
    service: TutorServiceDep,
    name: Annotated[str, Query(description="Name to search (partial match)")],
    subject: Annotated[
        str | None, Query(description="Restrict to an exact subject")
    ] = None,
) -> list[TutorResponse]:
    """Search tutors by name, case-insensitive, optionally within one subject."""
    if subject is None:
        tutors = await service.search_by_name(name)
    else:
        tutors = await service.search(subject, name)
    return [_to_tutor_response(t) for t in tutors]


@router.get("/recent", response_model=list[TutorResponse])
@limiter.limit(READ_LIMIT)
async def list_recent_tutors(
    request: Request, service: TutorServiceDep
) -> list[TutorResponse]:
    """Tutors created in the trailing window (30 days by default)."""
    tutors = await service.list_recent()
    return [_to_tutor_response(t) for t in tutors]


@router.get("/subject/{subject}", response_model=list[TutorResponse])
@limiter.limit(READ_LIMIT)
async def list_tutors_by_subject(
    request: Request, subject: str, service: TutorServiceDep
) -> list[TutorResponse]:
    """Tutors teaching a subject, ordered by name."""
    tutors = await service.list_by_subject(subject)
    return [_to_tutor_response(t) for t in tutors]


@router.get(
    "/{tutor_id}",
    response_model=TutorResponse,
    responses={404: {"description": "Tutor not found"}},
)
@limiter.limit(READ_LIMIT)
async def get_tutor(
    request: Request, tutor_id: int, service: TutorServiceDep
) -> TutorResponse | JSONResponse:
    """Get a tutor by ID."""
    tutor = await service.get_by_id(tutor_id)
    if tutor is None:
        return _failure_response(NotFound(tutor_id))
    return _to_tutor_response(tutor)


@router.post(
    "",
    response_model=TutorResponse,
    status_code=status.HTTP_201_CREATED,
    responses={k: v for k, v in _FAILURE_RESPONSES.items() if k != 404},
)
@limiter.limit(WRITE_LIMIT)
async def create_tutor(
    request: Request, body: TutorRequest, service: TutorServiceDep
) -> TutorResponse | JSONResponse:
    """Create a tutor. The email must not belong to another tutor."""
    result = await service.create(_to_tutor_input(body))
    if isinstance(result, TutorData):
        return _to_tutor_response(result)
    return _failure_response(result)


@router.put(
    "/{tutor_id}",
    response_model=TutorResponse,
    responses=_FAILURE_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)
async def update_tutor(
    request: Request, tutor_id: int, body: TutorRequest, service: TutorServiceDep
) -> TutorResponse | JSONResponse:
    """Replace a tutor's name, email, phone, subject and bio."""
    result = await service.update(tutor_id, _to_tutor_input(body))
    if isinstance(result, TutorData):
        return _to_tutor_response(result)
    return _failure_response(result)


@router.delete(
    "/{tutor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: _FAILURE_RESPONSES[404]},
)
@limiter.limit(WRITE_LIMIT)
async def delete_tutor(
    request: Request, tutor_id: int, service: TutorServiceDep
) -> Response:
    """Permanently delete a tutor."""
    failure = await service.delete(tutor_id)
    if failure is not None:
        return _failure_response(failure)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
