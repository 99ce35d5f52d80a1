"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access.
"""

from typing import TypeVar, Generic
from supabase import AsyncClient


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for the record type

    Subclasses implement the data access methods and map rows to
    their record type internally.

    Example:
        class ItemRepository(BaseRepository[dict]):
            async def get_by_id(self, item_id: str) -> Optional[dict]:
                result = await self._db.table("items").select("*").eq("id", item_id).execute()
                return result.data[0] if result.data else None
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Async Supabase client instance for database operations.
        """
        self._db = db
