"""Pydantic schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field


class TutorRequest(BaseModel):
    """Request body for creating or updating a tutor.

    Only shapes are checked here. Field rules (required, lengths, email
    syntax) are enforced by TutorService and reported as 422 responses.
    """

    name: str = ""
    email: str = ""
    phone: str | None = None
    subject: str | None = None
    bio: str | None = None


class TutorResponse(BaseModel):
    """Tutor response schema. Built explicitly by the tutors routes."""

    id: int
    name: str
    email: str
    phone: str | None = None
    subject: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    """Body returned for failures (404, 409, 422).

    Request validation errors (wrong body shape, non-integer id) use the same
    shape with error="invalid_input".
    """

    detail: str
    error: str = Field(description="Failure kind, e.g. not_found")
    field: str | None = None
    email: str | None = None
    tutor_id: int | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
