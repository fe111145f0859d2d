from typing import Any, List, Optional

from sqlalchemy import Select
from sqlalchemy.orm import Session


class BaseRepository:
    """Read helpers over a caller-owned session. Callers commit."""

    def __init__(self, db: Session):
        self.db = db

    def _first(self, stmt: Select) -> Optional[Any]:
        return self.db.execute(stmt).scalar_one_or_none()

    def _all(self, stmt: Select) -> List[Any]:
        return list(self.db.execute(stmt).scalars().all())

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
