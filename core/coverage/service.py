#!/usr/bin/env python3
"""
Coverage Scorer - Quality score for a geographic coverage claim.

quality_score = completeness (0-40) + breadth (0-35) + demand/overlap (0-25)

Competitor counts come from an injected CompetitiveDensityIndex, so the
scorer itself performs no I/O.
"""

from typing import Iterable, Mapping, Optional
import logging

from core.config_loader import CoverageConfig
from core.coverage.density import CompetitiveDensityIndex
from core.coverage.models import BatchScoreResult, CoverageArea, ScoreBreakdown, ScoreDetails
from core.coverage.scoring import (
    build_recommendations,
    calculate_breadth,
    calculate_completeness,
    calculate_demand,
    classify_quality,
)
from core.exceptions import InvalidArea

logger = logging.getLogger(__name__)


class CoverageScorer:
    """
    Scores coverage areas. Stateless apart from configuration; safe to share
    across threads.
    """

    def __init__(
        self,
        config: Optional[CoverageConfig] = None,
        density_index: Optional[CompetitiveDensityIndex] = None,
    ):
        self.config = config or CoverageConfig()
        self.density_index = density_index

    def score(self, area: CoverageArea, competitive_counts: Optional[int]) -> ScoreBreakdown:
        """
        Score one coverage area.

        Args:
            area: Coverage claim to score
            competitive_counts: Competing organizations in the area, or None if unknown

        Returns:
            ScoreBreakdown with sub-scores, quality level and details

        Raises:
            InvalidArea: if the area has no zip codes, cities or counties
        """
        if area.is_empty:
            raise InvalidArea(area.area_id, "coverage area has no zip codes, cities or counties")

        assumed = False
        competitors = competitive_counts
        if competitors is None:
            logger.warning(
                f"Competitor count unknown for area {area.area_id}; assuming 0 (new market)"
            )
            competitors = 0
            assumed = True
        elif competitors < 0:
            logger.warning(
                f"Negative competitor count {competitors} for area {area.area_id}; treating as unknown"
            )
            competitors = 0
            assumed = True

        completeness = calculate_completeness(area, self.config)
        breadth = calculate_breadth(area.unit_count, self.config)
        demand, competition_level = calculate_demand(competitors, self.config)
        quality = completeness + breadth + demand

        details = ScoreDetails(
            zip_code_count=len(area.zip_codes),
            city_count=len(area.cities),
            county_count=len(area.counties),
            unit_count=area.unit_count,
            competing_teams=competitors,
            competitor_count_assumed=assumed,
            has_zips=bool(area.zip_codes),
            has_cities=bool(area.cities),
            has_counties=bool(area.counties),
            has_geometry=area.has_geometry,
        )

        logger.debug(
            f"Area {area.area_id}: completeness={completeness:.1f}, breadth={breadth:.1f}, "
            f"demand={demand:.1f} ({competition_level}), quality={quality:.1f}"
        )

        return ScoreBreakdown(
            area_id=area.area_id,
            completeness_score=completeness,
            coverage_breadth_score=breadth,
            demand_overlap_score=demand,
            score_details=details,
            quality_level=classify_quality(quality, self.config),
            competition_level=competition_level,
            recommendations=tuple(build_recommendations(
                completeness, breadth, demand, competitors, self.config
            )),
        )

    def score_area(self, area: CoverageArea) -> ScoreBreakdown:
        """Score an area using the injected density index for competitor counts."""
        if self.density_index is None:
            raise ValueError("CoverageScorer has no density index configured")

        try:
            count = self.density_index.count_competitors(area)
        except Exception as e:
            logger.warning(f"Density index failed for area {area.area_id}: {e}")
            count = None
        return self.score(area, count)

    def score_many(
        self,
        areas: Iterable[CoverageArea],
        competitive_counts: Optional[Mapping[str, Optional[int]]] = None,
    ) -> BatchScoreResult:
        """
        Rescore a batch of areas.

        Counts are looked up by area_id; when no mapping is given the density
        index is used. An invalid area is recorded and does not stop the batch.
        """
        result = BatchScoreResult()
        for area in areas:
            try:
                if competitive_counts is None and self.density_index is not None:
                    breakdown = self.score_area(area)
                else:
                    count = (competitive_counts or {}).get(area.area_id)
                    breakdown = self.score(area, count)
            except InvalidArea as e:
                logger.warning(f"Skipping area {area.area_id}: {e}")
                result.errors[area.area_id] = str(e)
                continue
            result.breakdowns[area.area_id] = breakdown

        logger.info(
            f"Scored {len(result.breakdowns)} coverage areas ({len(result.errors)} invalid)"
        )
        return result
