import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from core.coverage import CompetitiveDensityIndex, CoverageArea, ScoreBreakdown
from database.models import MarketCoverageRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def _to_area(record: MarketCoverageRecord) -> CoverageArea:
    return CoverageArea.from_record(record.id, record.coverage_type, record.data)


class MarketCoverageRepository(BaseRepository):
    def get_record(self, coverage_id: str) -> Optional[MarketCoverageRecord]:
        stmt = select(MarketCoverageRecord).where(MarketCoverageRecord.id == coverage_id)
        return self._first(stmt)

    def get_area(self, coverage_id: str) -> Optional[CoverageArea]:
        record = self.get_record(coverage_id)
        if record is None:
            return None
        return _to_area(record)

    def get_active_records(self, exclude_user_id: Optional[str] = None) -> List[MarketCoverageRecord]:
        stmt = select(MarketCoverageRecord).where(MarketCoverageRecord.active.is_(True))
        if exclude_user_id is not None:
            stmt = stmt.where(MarketCoverageRecord.user_id != exclude_user_id)
        stmt = stmt.order_by(MarketCoverageRecord.id)
        return self._all(stmt)

    def get_areas_for_user(self, user_id: str) -> List[CoverageArea]:
        stmt = select(MarketCoverageRecord).where(
            MarketCoverageRecord.user_id == user_id,
            MarketCoverageRecord.active.is_(True)
        ).order_by(MarketCoverageRecord.id)
        return [_to_area(r) for r in self._all(stmt)]

    def save_breakdown(self, breakdown: ScoreBreakdown) -> bool:
        """Store computed scores on the coverage row. Caller commits."""
        record = self.get_record(breakdown.area_id)
        if record is None:
            logger.warning(f"Cannot store scores: coverage {breakdown.area_id} not found")
            return False

        data = breakdown.to_dict()
        record.completeness_score = data['completeness_score']
        record.coverage_breadth_score = data['coverage_breadth_score']
        record.demand_overlap_score = data['demand_overlap_score']
        record.quality_score = data['quality_score']
        record.score_details = data['score_details']
        record.last_scored_at = datetime.now(timezone.utc)
        return True


class SqlCompetitiveDensityIndex(CompetitiveDensityIndex):
    """
    Counts distinct other users whose active coverage shares at least one
    zip code, city or county with the area.

    Overlap is checked in Python over the stored JSON geography.
    """

    def __init__(self, repository: MarketCoverageRepository):
        self.repository = repository

    def count_competitors(self, area: CoverageArea) -> Optional[int]:
        owner = self.repository.get_record(area.area_id)
        if owner is None:
            logger.debug(f"Coverage {area.area_id} not stored; counting against all users")
        exclude_user = owner.user_id if owner is not None else None

        competitors = set()
        for record in self.repository.get_active_records(exclude_user_id=exclude_user):
            if record.user_id in competitors:
                continue
            other = _to_area(record)
            if (
                area.zip_codes & other.zip_codes
                or area.cities & other.cities
                or area.counties & other.counties
            ):
                competitors.add(record.user_id)
        return len(competitors)
