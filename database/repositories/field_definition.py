import logging
from typing import List, Optional

from sqlalchemy import select

from core.registry import RegistrySnapshot
from database.models import FieldDefinitionRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class FieldDefinitionRepository(BaseRepository):
    def get_by_name(self, field_name: str) -> Optional[FieldDefinitionRecord]:
        stmt = select(FieldDefinitionRecord).where(FieldDefinitionRecord.field_name == field_name)
        return self._first(stmt)

    def list_definitions(self, include_inactive: bool = True) -> List[FieldDefinitionRecord]:
        stmt = select(FieldDefinitionRecord)
        if not include_inactive:
            stmt = stmt.where(FieldDefinitionRecord.active.is_(True))
        stmt = stmt.order_by(FieldDefinitionRecord.field_name)
        return self._all(stmt)

    def load_snapshot(self, version: int = 1) -> RegistrySnapshot:
        """
        Read every definition into an immutable registry snapshot.

        Inactive rows are kept so the snapshot can answer lookups for them;
        scoring only ever sees active fields. Invalid rows are skipped.
        """
        records = [row.to_record() for row in self.list_definitions()]
        snapshot = RegistrySnapshot.from_records(records, version=version)
        logger.info(f"Loaded {len(snapshot)} of {len(records)} field definitions (registry v{version})")
        return snapshot
