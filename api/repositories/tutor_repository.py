"""Tutor repository for database operations."""

from datetime import datetime

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Tutor
from repositories.utils import log_slow_query


class TutorRepository:
    """Repository for Tutor database operations.

    No business rules live here: uniqueness and existence checks are
    orchestrated by TutorService. Each method is a single round trip.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("list_tutors")
    async def list_all(self) -> list[Tutor]:
        """Get all tutors, ordered by ID."""
        result = await self.db.execute(select(Tutor).order_by(Tutor.id))
        return list(result.scalars().all())

    @log_slow_query("get_tutor_by_id")
    async def get_by_id(self, tutor_id: int) -> Tutor | None:
        """Get a tutor by ID."""
        result = await self.db.execute(select(Tutor).where(Tutor.id == tutor_id))
        return result.scalar_one_or_none()

    @log_slow_query("get_tutor_by_email")
    async def get_by_email(self, email: str) -> Tutor | None:
        """Get a tutor by email.

        Exact match; the unique constraint ensures at most one row.
        """
        result = await self.db.execute(select(Tutor).where(Tutor.email == email))
        return result.scalar_one_or_none()

    @log_slow_query("tutor_exists_by_email")
    async def exists_by_email(self, email: str) -> bool:
        result = await self.db.execute(select(exists().where(Tutor.email == email)))
        return bool(result.scalar())

    @log_slow_query("tutor_exists_by_id")
    async def exists_by_id(self, tutor_id: int) -> bool:
        result = await self.db.execute(select(exists().where(Tutor.id == tutor_id)))
        return bool(result.scalar())

    @log_slow_query("count_tutors")
    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Tutor))
        return result.scalar_one()

    @log_slow_query("save_tutor")
    async def save(self, tutor: Tutor) -> Tutor:
        """Insert a new tutor or flush changes to an existing one.

        Flushes so that the generated ID is available and constraint
        violations surface inside the caller's transaction.
        Does NOT commit. Caller owns the transaction.
        """
        self.db.add(tutor)
        await self.db.flush()
        return tutor

    @log_slow_query("delete_tutor")
    async def delete_by_id(self, tutor_id: int) -> None:
        """Delete a tutor by ID. Deleting a missing ID is a no-op."""
        await self.db.execute(delete(Tutor).where(Tutor.id == tutor_id))

    @log_slow_query("find_tutors_by_name")
    async def find_by_name_containing(self, substring: str) -> list[Tutor]:
        """Get tutors whose name contains substring (case-insensitive).

        LIKE wildcards in substring match literally.
        """
        result = await self.db.execute(
            select(Tutor)
            .where(Tutor.name.icontains(substring, autoescape=True))
            .order_by(Tutor.name, Tutor.id)
        )
        return list(result.scalars().all())

    @log_slow_query("find_tutors_by_subject")
    async def find_by_subject_ordered(self, subject: str) -> list[Tutor]:
        """Get tutors with an exact subject match, ordered by name ascending."""
        result = await self.db.execute(
            select(Tutor)
            .where(Tutor.subject == subject)
            .order_by(Tutor.name.asc(), Tutor.id)
        )
        return list(result.scalars().all())

    @log_slow_query("find_tutors_by_subject_and_name")
    async def find_by_subject_and_name_containing(
        self, subject: str, substring: str
    ) -> list[Tutor]:
        result = await self.db.execute(
            select(Tutor)
            .where(
                Tutor.subject == subject,
                Tutor.name.icontains(substring, autoescape=True),
            )
            .order_by(Tutor.name.asc(), Tutor.id)
        )
        return list(result.scalars().all())

    @log_slow_query("find_recent_tutors")
    async def find_recent(self, since: datetime) -> list[Tutor]:
        """Get tutors created at or after `since`, newest first.

        Expects `since` in UTC; the window is computed by the service layer.
        """
        result = await self.db.execute(
            select(Tutor)
            .where(Tutor.created_at >= since)
            .order_by(Tutor.created_at.desc(), Tutor.id.desc())
        )
        return list(result.scalars().all())
