from sqlalchemy.orm import Session
from typing import Generic, Type, TypeVar, Optional, Dict, Any
from app.database import IN_TRANSACTION
from app.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository with model and database session.

        Args:
            model: The SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def _persist(self) -> None:
        """Commit, or only flush when running inside ``transaction(db)``."""
        if self.db.info.get(IN_TRANSACTION):
            self.db.flush()
        else:
            self.db.commit()

    def get(self, id: int) -> Optional[T]:
        """Get a single record by ID."""
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_for_update(self, id: int) -> Optional[T]:
        """Get a record and lock its row until the surrounding transaction ends."""
        return (
            self.db.query(self.model)
            .filter(self.model.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def create(self, obj: T) -> T:
        """Create a new record."""
        self.db.add(obj)
        self._persist()
        self.db.refresh(obj)
        return obj

    def update(self, id: int, data: Dict[str, Any]) -> Optional[T]:
        """Update a record by ID."""
        obj = self.get(id)
        if not obj:
            return None

        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        self._persist()
        self.db.refresh(obj)
        return obj

    def delete(self, id: int) -> bool:
        """Delete a record by ID. Returns True if deleted, False if not found."""
        obj = self.get(id)
        if not obj:
            return False

        self.db.delete(obj)
        self._persist()
        return True

    def exists(self, id: int) -> bool:
        """Check if a record exists by ID."""
        return self.db.query(self.model).filter(self.model.id == id).count() > 0
