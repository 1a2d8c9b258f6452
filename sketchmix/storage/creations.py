"""Persistence of saved creations (drawing + generated media)."""

import logging
import time
from typing import List, Optional
from sqlalchemy import JSON, Column, Integer, Text, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sketchmix.core.errors import StorageError
from sketchmix.core.models import CreationCreate, CreationRecord
from sketchmix.storage.database import Base, create_db_engine, create_session_factory

logger = logging.getLogger(__name__)


class Creation(Base):
    __tablename__ = "creations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    drawing_data = Column(Text, nullable=False)  # data URI of the canvas
    generated_image = Column(Text, nullable=False)  # URL of the stylized image
    emotional_analysis = Column(JSON, nullable=False)
    music_url = Column(Text, nullable=False)
    created_at = Column(Integer, nullable=False)  # Unix seconds


class CreationRepository:
    """Create and read creations.

    Every write is a single independent insert; records are never updated.

    Attributes:
        session_factory: SQLAlchemy sessionmaker bound to the database
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "CreationRepository":
        engine = create_db_engine(database_url)
        return cls(create_session_factory(engine))

    def create(self, creation: CreationCreate) -> CreationRecord:
        """Persist a creation, stamping it with the current time.

        Raises:
            StorageError: If the insert fails
        """
        row = Creation(
            drawing_data=creation.drawing_data,
            generated_image=creation.generated_image,
            emotional_analysis=creation.emotional_analysis.model_dump(by_alias=True),
            music_url=creation.music_url,
            created_at=int(time.time()),
        )
        try:
            with self.session_factory() as session, session.begin():
                session.add(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save creation: {e}")
            raise StorageError(f"Failed to save creation: {e}") from e

        logger.info(f"Saved creation {row.id}")
        return self._to_record(row)

    def get(self, creation_id: int) -> Optional[CreationRecord]:
        """Fetch one creation by id.

        Raises:
            StorageError: If the query fails
        """
        try:
            with self.session_factory() as session:
                row = session.get(Creation, creation_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch creation: {e}") from e

        return self._to_record(row) if row is not None else None

    def list_all(self) -> List[CreationRecord]:
        """All creations, oldest first.

        Raises:
            StorageError: If the query fails
        """
        try:
            with self.session_factory() as session:
                rows = session.scalars(select(Creation).order_by(Creation.id)).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch creations: {e}") from e

        return [self._to_record(row) for row in rows]

    def ping(self) -> bool:
        """Check the database connection."""
        try:
            with self.session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    @staticmethod
    def _to_record(row: Creation) -> CreationRecord:
        return CreationRecord(
            id=row.id,
            drawing_data=row.drawing_data,
            generated_image=row.generated_image,
            emotional_analysis=row.emotional_analysis,
            music_url=row.music_url,
            created_at=row.created_at,
        )
