import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Float, JSON, Index

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketCoverageRecord(Base):
    """
    A stored coverage claim and its last computed quality scores.

    `data` holds the geography as written by the coverage editors:
    zipCodes / cities / counties lists plus optional center, polygon or
    coordinates.
    """
    __tablename__ = 'market_coverage'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    coverage_type = Column(Text, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, default=True)

    completeness_score = Column(Float, nullable=True)
    coverage_breadth_score = Column(Float, nullable=True)
    demand_overlap_score = Column(Float, nullable=True)
    quality_score = Column(Float, nullable=True)
    score_details = Column(JSON, nullable=True)
    last_scored_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index('idx_market_coverage_user', 'user_id'),
        Index('idx_market_coverage_active', 'active'),
    )
