"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services focused
on business rules. This separation provides:
- Single source of truth for database operations
- Easier testing (repositories can be mocked)
- Reusable queries across multiple service operations
"""

from repositories.tutor_repository import TutorRepository
from repositories.utils import log_slow_query

__all__ = [
    "TutorRepository",
    "log_slow_query",
]
