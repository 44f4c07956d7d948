"""
Base Data Access Object (DAO) class.

WHY: The DAO pattern separates database operations from business logic,
making the ticket repository testable against an in-memory SQLite
database instead of the hosted Postgres.
"""

from typing import Generic, TypeVar, Type, Optional, Any, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from support_api.models.base import Base

# Type variable for model class
ModelType = TypeVar("ModelType", bound=Base)


class BaseDAO(Generic[ModelType]):
    """
    Base Data Access Object providing common operations for all models.

    Type Parameters:
        ModelType: The SQLAlchemy model class this DAO manages
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize DAO with model class and database session.

        Args:
            model: The SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any, options: Sequence[Any] = ()) -> Optional[ModelType]:
        """
        Retrieve a single record by primary key.

        Args:
            id: Primary key value
            options: Loader options (e.g. ``selectinload``) applied to the query

        Returns:
            The model instance if found, None otherwise
        """
        query = select(self.model).options(*options).where(self.model.id == id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

