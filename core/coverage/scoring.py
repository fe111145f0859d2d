#!/usr/bin/env python3
"""
Coverage Calculations - Completeness, breadth and demand sub-scores.

Each sub-score is capped by construction, so their sum (the quality score)
always lands in [0, 100].
"""

from typing import List, Tuple
import logging
import math

from core.config_loader import CoverageConfig, DemandBand
from core.coverage.models import CoverageArea, QualityLevel

logger = logging.getLogger(__name__)


def calculate_completeness(area: CoverageArea, config: CoverageConfig) -> float:
    """
    Presence-based completeness score.

    Each populated dimension contributes its configured points; adding units
    to a dimension can only turn its presence on, so the score is monotonic.

    Returns:
        Completeness score (0.0 - completeness_max)
    """
    score = 0.0
    if area.zip_codes:
        score += config.completeness_zip_points
    if area.cities:
        score += config.completeness_city_points
    if area.counties:
        score += config.completeness_county_points
    return min(config.completeness_max, score)


def calculate_breadth(unit_count: int, config: CoverageConfig) -> float:
    """
    Breadth score with diminishing returns.

    Formula (sqrt):   breadth_max * min(1, sqrt(count / reference_count))
    Formula (linear): breadth_max * min(1, count / reference_count)

    Returns:
        Breadth score (0.0 - breadth_max)
    """
    if unit_count <= 0:
        return 0.0
    ratio = min(1.0, unit_count / config.breadth_reference_count)
    if config.breadth_curve == "sqrt":
        ratio = math.sqrt(ratio)
    return config.breadth_max * ratio


def find_demand_band(competitors: int, bands: List[DemandBand]) -> DemandBand:
    """Band containing the competitor count. Bands are validated contiguous from 0."""
    for band in bands:
        if band.contains(competitors):
            return band
    # Unreachable with validated bands; keep the last (unbounded) band
    return bands[-1]


def calculate_demand(competitors: int, config: CoverageConfig) -> Tuple[float, str]:
    """
    Banded demand/overlap score.

    Not monotonic: moderate competition is evidence of demand and scores
    highest, an empty or saturated market scores lower.

    Returns:
        (demand score 0.0 - demand_max, band label)
    """
    band = find_demand_band(max(0, competitors), config.demand_bands)
    return min(config.demand_max, band.points), band.label


def classify_quality(quality_score: float, config: CoverageConfig) -> QualityLevel:
    thresholds = config.quality_thresholds
    if quality_score >= thresholds.excellent:
        return QualityLevel.EXCELLENT
    if quality_score >= thresholds.good:
        return QualityLevel.GOOD
    if quality_score >= thresholds.fair:
        return QualityLevel.FAIR
    return QualityLevel.NEEDS_IMPROVEMENT


def build_recommendations(
    completeness: float,
    breadth: float,
    demand: float,
    competitors: int,
    config: CoverageConfig,
) -> List[str]:
    """Suggestions shown alongside a coverage score below the display threshold."""
    rules = config.recommendations
    if completeness + breadth + demand >= rules.show_below_quality:
        return []

    recommendations = []
    if completeness < rules.low_completeness:
        recommendations.append(
            "Add more detailed location data (counties, coordinates) to improve completeness"
        )
    if breadth < rules.low_breadth:
        recommendations.append("Expand coverage to include more ZIP codes and cities")
    if demand < rules.low_demand and competitors == 0:
        recommendations.append("This appears to be a new market with limited competition")
    if demand >= rules.high_demand:
        recommendations.append("High competition area - established market!")
    return recommendations
