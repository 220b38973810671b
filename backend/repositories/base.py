"""
Generic repository with the session operations every table needs.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Common CRUD helpers bound to one model and one session.

    ``create``, ``update`` and ``delete`` commit immediately. Services that
    need several writes in one transaction use ``add``/``flush`` and finish
    with a single ``commit`` (or ``rollback``).
    """

    def __init__(self, model: type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """
        Look up a row by primary key.

        Args:
            id: Primary key

        Returns:
            The row, or None when absent
        """
        return self.db.get(self.model, id)

    def count(self) -> int:
        return self.db.query(self.model).count()

    def add(self, entity: T) -> None:
        """Stage ``entity`` without committing."""
        self.db.add(entity)

    def add_all(self, entities: list[T]) -> None:
        """Stage several entities without committing."""
        self.db.add_all(entities)

    def create(self, entity: T) -> T:
        """
        Insert and commit a new row.

        Args:
            entity: Transient model instance

        Returns:
            The refreshed, persisted instance
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        """Commit pending changes on ``entity`` and reload it."""
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        self.db.delete(entity)
        self.db.commit()

    def commit(self) -> None:
        self.db.commit()

    def flush(self) -> None:
        self.db.flush()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        self.db.refresh(entity)
