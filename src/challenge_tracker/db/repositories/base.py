"""Base repository interface.

Every repository exposes the same small contract over its entity type so
that callers (CLI, admin routes) can treat them uniformly.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List

# Type variable for the entity type stored in the repository
T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """
    Abstract base class for synchronous repository implementations.

    Type Parameters:
        T: The type of entity stored in this repository
    """

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """
        Retrieve an entity by its ID.

        Returns:
            The entity if found, None otherwise
        """
        pass

    @abstractmethod
    def get_all(
        self,
        limit: int = 100,
        offset: int = 0,
        **filters
    ) -> List[T]:
        """
        Retrieve entities matching the given filters.

        Args:
            limit: Maximum number of entities to return
            offset: Number of entities to skip
            **filters: Field equality filters
        """
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by its ID.

        Returns:
            True if the entity was deleted, False if not found
        """
        pass

    @abstractmethod
    def count(self, **filters) -> int:
        """Count entities matching the given filters."""
        pass
