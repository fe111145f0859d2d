import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, Float, JSON, Index

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FieldDefinitionRecord(Base):
    """
    Administrator-configured field definition as stored.

    Read by the registry loader; rows are deactivated, never deleted,
    while historical scores reference them.
    """
    __tablename__ = 'field_definitions'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    field_name = Column(Text, nullable=False, unique=True)
    display_name = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)
    field_type = Column(Text, nullable=False)

    allowed_values = Column(JSON, nullable=True)
    entity_types = Column(JSON, nullable=False, default=list)

    use_ai_matching = Column(Boolean, default=False)
    matching_weight = Column(Integer, default=0)
    reference_range = Column(Float, nullable=True)
    is_required = Column(Boolean, default=False)
    active = Column(Boolean, default=True)

    field_group = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index('idx_field_definitions_active', 'active'),
    )

    def to_record(self) -> dict:
        """Plain mapping accepted by FieldDefinition.from_record."""
        return {
            'field_name': self.field_name,
            'display_name': self.display_name,
            'description': self.description,
            'field_type': self.field_type,
            'allowed_values': self.allowed_values,
            'entity_types': self.entity_types,
            'use_ai_matching': self.use_ai_matching,
            'matching_weight': self.matching_weight,
            'reference_range': self.reference_range,
            'is_required': self.is_required,
            'active': self.active,
            'field_group': self.field_group,
            'sort_order': self.sort_order,
        }
