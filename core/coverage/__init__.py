#!/usr/bin/env python3
"""
Coverage Module - Coverage-quality scoring for geographic claims.

Public API:
- CoverageScorer: Scores a coverage area into completeness/breadth/demand sub-scores
- CoverageArea, ScoreBreakdown: Input and output data structures
- CompetitiveDensityIndex: Contract for competitor-count sources

- models.py: Data structures
- scoring.py: Sub-score formulas
- density.py: Competitor-count contract and a static implementation
- service.py: CoverageScorer orchestrator
"""

from core.coverage.density import CompetitiveDensityIndex, StaticDensityIndex
from core.coverage.models import (
    BatchScoreResult, CoverageArea, QualityLevel, ScoreBreakdown, ScoreDetails, ShapeKind
)
from core.coverage.service import CoverageScorer

__all__ = [
    'CoverageScorer', 'CoverageArea', 'ScoreBreakdown', 'ScoreDetails',
    'QualityLevel', 'ShapeKind', 'BatchScoreResult',
    'CompetitiveDensityIndex', 'StaticDensityIndex'
]
