"""Tutor service for tutor-directory business logic.

This module owns the business rules for tutor records:
- Input validation (required fields, lengths, email syntax)
- Email uniqueness (pre-check plus the store's unique constraint)
- Existence checks before update/delete
- Explicit created_at/updated_at stamping

Business failures are returned as typed values (InvalidInput, NotFound,
DuplicateEmail), never raised. Store and connectivity errors propagate.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.database import readonly_transaction, transaction
from core.logger import get_logger
from models import (
    EMAIL_MAX_LENGTH,
    EMAIL_UNIQUE_CONSTRAINT,
    MAX_TUTOR_ID,
    NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    SUBJECT_MAX_LENGTH,
    Tutor,
    as_utc,
    utcnow,
)
from repositories.tutor_repository import TutorRepository

logger = get_logger(__name__)

DEFAULT_RECENT_WINDOW = timedelta(days=30)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class TutorInput:
    """Caller-supplied fields for create/update."""

    name: str
    email: str
    phone: str | None = None
    subject: str | None = None
    bio: str | None = None


@dataclass(frozen=True)
class TutorData:
    """DTO for a tutor (service-layer return type)."""

    id: int
    name: str
    email: str
    phone: str | None
    subject: str | None
    bio: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class InvalidInput:
    """Malformed input, detected before any store access."""

    field: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid {self.field}: {self.reason}"


@dataclass(frozen=True)
class NotFound:
    """Referenced tutor does not exist."""

    tutor_id: int

    @property
    def message(self) -> str:
        return f"Tutor not found with id: {self.tutor_id}"


@dataclass(frozen=True)
class DuplicateEmail:
    """Another tutor already holds this email."""

    email: str

    @property
    def message(self) -> str:
        return f"Email already exists: {self.email}"


TutorFailure = InvalidInput | NotFound | DuplicateEmail


def _to_tutor_data(tutor: Tutor) -> TutorData:
    return TutorData(
        id=tutor.id,
        name=tutor.name,
        email=tutor.email,
        phone=tutor.phone,
        subject=tutor.subject,
        bio=tutor.bio,
        created_at=as_utc(tutor.created_at),
        updated_at=as_utc(tutor.updated_at),
    )


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_tutor_input(data: TutorInput) -> TutorInput:
    """Strip surrounding whitespace; blank optional fields become None.

    Bio is kept verbatim apart from blank-to-None.
    """
    bio = data.bio if data.bio and data.bio.strip() else None
    return TutorInput(
        name=(data.name or "").strip(),
        email=(data.email or "").strip(),
        phone=_clean_optional(data.phone),
        subject=_clean_optional(data.subject),
        bio=bio,
    )


def validate_tutor_input(data: TutorInput) -> InvalidInput | None:
    """Check field constraints on normalized input.

    Returns the first violation found, or None when the input is valid.
    """
    if not data.name:
        return InvalidInput("name", "Name is required")
    if len(data.name) > NAME_MAX_LENGTH:
        return InvalidInput(
            "name", f"Name cannot exceed {NAME_MAX_LENGTH} characters"
        )
    if not data.email:
        return InvalidInput("email", "Email is required")
    if len(data.email) > EMAIL_MAX_LENGTH:
        return InvalidInput(
            "email", f"Email cannot exceed {EMAIL_MAX_LENGTH} characters"
        )
    if not _EMAIL_RE.match(data.email):
        return InvalidInput("email", "Invalid email format")
    if data.phone is not None and len(data.phone) > PHONE_MAX_LENGTH:
        return InvalidInput(
            "phone", f"Phone cannot exceed {PHONE_MAX_LENGTH} characters"
        )
    if data.subject is not None and len(data.subject) > SUBJECT_MAX_LENGTH:
        return InvalidInput(
            "subject", f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters"
        )
    return None


def _is_storable_id(tutor_id: int) -> bool:
    """Ids outside the primary key range cannot exist; skip the store."""
    return 1 <= tutor_id <= MAX_TUTOR_ID


def _is_email_conflict(exc: IntegrityError) -> bool:
    """True when the integrity error comes from the email unique constraint.

    PostgreSQL reports the constraint name; SQLite reports the column.
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return EMAIL_UNIQUE_CONSTRAINT in message or "tutors.email" in message


class TutorService:
    """Transaction boundary for tutor operations.

    Built once at startup with the session factory. Every public method runs
    in exactly one transaction: reads in a read-only transaction, writes in a
    single read-write transaction spanning their check-then-write sequence.
    The pre-checks exist to produce clean failures; the unique constraint on
    email is the final authority and its violations map to DuplicateEmail.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        repository_cls: type[TutorRepository] = TutorRepository,
        clock: Callable[[], datetime] = utcnow,
        recent_window: timedelta = DEFAULT_RECENT_WINDOW,
    ):
        self._session_maker = session_maker
        self._repository_cls = repository_cls
        self._clock = clock
        self._recent_window = recent_window

    async def list_all(self) -> list[TutorData]:
        async with readonly_transaction(self._session_maker) as session:
            tutors = await self._repository_cls(session).list_all()
            return [_to_tutor_data(t) for t in tutors]

    async def get_by_id(self, tutor_id: int) -> TutorData | None:
        """Get a tutor by ID. Absence is a valid outcome, not a failure."""
        if not _is_storable_id(tutor_id):
            return None
        async with readonly_transaction(self._session_maker) as session:
            tutor = await self._repository_cls(session).get_by_id(tutor_id)
            return _to_tutor_data(tutor) if tutor else None

    async def create(
        self, data: TutorInput
    ) -> TutorData | InvalidInput | DuplicateEmail:
        """Create a tutor with a previously unused email."""
        data = normalize_tutor_input(data)
        invalid = validate_tutor_input(data)
        if invalid:
            return invalid

        try:
            async with transaction(self._session_maker) as session:
                repo = self._repository_cls(session)
                if await repo.exists_by_email(data.email):
                    logger.info("tutor.duplicate_email", email=data.email)
                    return DuplicateEmail(data.email)

                now = as_utc(self._clock())
                tutor = Tutor(
                    name=data.name,
                    email=data.email,
                    phone=data.phone,
                    subject=data.subject,
                    bio=data.bio,
                    created_at=now,
                    updated_at=now,
                )
                tutor = await repo.save(tutor)
                created = _to_tutor_data(tutor)
        except IntegrityError as exc:
            if not _is_email_conflict(exc):
                raise
            logger.warning("tutor.duplicate_email.race", email=data.email)
            return DuplicateEmail(data.email)

        logger.info("tutor.created", tutor_id=created.id)
        return created

    async def update(
        self, tutor_id: int, data: TutorInput
    ) -> TutorData | InvalidInput | NotFound | DuplicateEmail:
        """Overwrite all mutable fields of an existing tutor.

        Keeping the tutor's own email is not a conflict. On any failure the
        stored record is left unchanged.
        """
        data = normalize_tutor_input(data)
        invalid = validate_tutor_input(data)
        if invalid:
            return invalid
        if not _is_storable_id(tutor_id):
            return NotFound(tutor_id)

        try:
            async with transaction(self._session_maker) as session:
                repo = self._repository_cls(session)
                tutor = await repo.get_by_id(tutor_id)
                if tutor is None:
                    return NotFound(tutor_id)

                if tutor.email != data.email and await repo.exists_by_email(
                    data.email
                ):
                    logger.info(
                        "tutor.duplicate_email", tutor_id=tutor_id, email=data.email
                    )
                    return DuplicateEmail(data.email)

                tutor.name = data.name
                tutor.email = data.email
                tutor.phone = data.phone
                tutor.subject = data.subject
                tutor.bio = data.bio
                # updated_at never moves backwards, even if the clock does
                tutor.updated_at = max(as_utc(self._clock()), as_utc(tutor.updated_at))
                tutor = await repo.save(tutor)
                updated = _to_tutor_data(tutor)
        except IntegrityError as exc:
            if not _is_email_conflict(exc):
                raise
            logger.warning(
                "tutor.duplicate_email.race", tutor_id=tutor_id, email=data.email
            )
            return DuplicateEmail(data.email)

        logger.info("tutor.updated", tutor_id=tutor_id)
        return updated

    async def delete(self, tutor_id: int) -> NotFound | None:
        """Permanently remove a tutor. Returns NotFound if it does not exist."""
        if not _is_storable_id(tutor_id):
            return NotFound(tutor_id)
        async with transaction(self._session_maker) as session:
            repo = self._repository_cls(session)
            if not await repo.exists_by_id(tutor_id):
                return NotFound(tutor_id)
            await repo.delete_by_id(tutor_id)

        logger.info("tutor.deleted", tutor_id=tutor_id)
        return None

    async def search_by_name(self, substring: str) -> list[TutorData]:
        """Tutors whose name contains substring, case-insensitive."""
        async with readonly_transaction(self._session_maker) as session:
            tutors = await self._repository_cls(session).find_by_name_containing(
                substring
            )
            return [_to_tutor_data(t) for t in tutors]

    async def list_by_subject(self, subject: str) -> list[TutorData]:
        """Tutors teaching exactly `subject`, ordered by name."""
        async with readonly_transaction(self._session_maker) as session:
            tutors = await self._repository_cls(session).find_by_subject_ordered(
                subject
            )
            return [_to_tutor_data(t) for t in tutors]

    async def search(self, subject: str, name: str) -> list[TutorData]:
        """Tutors teaching exactly `subject` whose name contains `name`."""
        async with readonly_transaction(self._session_maker) as session:
            repo = self._repository_cls(session)
            tutors = await repo.find_by_subject_and_name_containing(subject, name)
            return [_to_tutor_data(t) for t in tutors]

    async def list_recent(self) -> list[TutorData]:
        """Tutors created within the trailing window (service clock, UTC)."""
        since = as_utc(self._clock()) - self._recent_window
        async with readonly_transaction(self._session_maker) as session:
            tutors = await self._repository_cls(session).find_recent(since)
            return [_to_tutor_data(t) for t in tutors]
