"""Competitive density - count of other organizations claiming overlapping geography."""
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from core.coverage.models import CoverageArea


class CompetitiveDensityIndex(ABC):
    """
    Abstract source of competitor counts.

    Counts may be stale. None means Unknown, which is not the same as zero.
    """

    @abstractmethod
    def count_competitors(self, area: CoverageArea) -> Optional[int]:
        pass


class StaticDensityIndex(CompetitiveDensityIndex):
    """Counts looked up by area id, e.g. from a precomputed snapshot."""

    def __init__(self, counts: Mapping[str, int]):
        self.counts = dict(counts)

    def count_competitors(self, area: CoverageArea) -> Optional[int]:
        return self.counts.get(area.area_id)
