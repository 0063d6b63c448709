import logging
from typing import Generic, TypeVar, Type, Optional, List, Any
from uuid import UUID

from sqlmodel import SQLModel, Session, select, func
from sqlalchemy.exc import SQLAlchemyError

from ....core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class with common read operations.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    async def get(self, id: UUID) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        try:
            statement = select(self.model).where(self.model.id == id)
            result = self.session.exec(statement)
            return result.first()

        except SQLAlchemyError as e:
            logger.error(f"Failed to get {self.model.__name__} by ID {id}: {e}")
            raise DatabaseError(f"Failed to get {self.model.__name__}: {str(e)}", operation="get")

    async def count(self, conditions: Optional[List[Any]] = None) -> int:
        """
        Count records matching SQL conditions.

        Args:
            conditions: SQLAlchemy boolean expressions, ANDed

        Returns:
            Number of records
        """
        try:
            statement = select(func.count()).select_from(self.model)
            for condition in conditions or []:
                statement = statement.where(condition)

            return self.session.exec(statement).one()

        except SQLAlchemyError as e:
            logger.error(f"Failed to count {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to count {self.model.__name__}: {str(e)}", operation="count")
