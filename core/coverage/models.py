#!/usr/bin/env python3
"""
Coverage Models - Data structures for coverage-quality scoring.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


class ShapeKind(str, Enum):
    RADIUS = "radius"
    DRAWN_POLYGON = "drawn_polygon"
    CITY_LIST = "city_list"
    ZIP_LIST = "zip_list"


# coverage_type values written by the coverage editors
_SHAPE_ALIASES = {
    'radius': ShapeKind.RADIUS,
    'zip_radius': ShapeKind.RADIUS,
    'polygon': ShapeKind.DRAWN_POLYGON,
    'drawn_polygon': ShapeKind.DRAWN_POLYGON,
    'draw': ShapeKind.DRAWN_POLYGON,
    'cities': ShapeKind.CITY_LIST,
    'city_list': ShapeKind.CITY_LIST,
    'zip': ShapeKind.ZIP_LIST,
    'zip_list': ShapeKind.ZIP_LIST,
}


def parse_shape_kind(value: Any) -> ShapeKind:
    if isinstance(value, ShapeKind):
        return value
    try:
        return _SHAPE_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown coverage shape: {value!r}")


def _normalize_units(values: Optional[Iterable[Any]]) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    normalized = (str(v).strip() for v in values if v is not None)
    return frozenset(v for v in normalized if v)


@dataclass(frozen=True)
class CoverageArea:
    """
    A geographic claim. Units are counted as given: a city is not expanded
    into its zip codes.
    """
    area_id: str
    zip_codes: FrozenSet[str] = frozenset()
    cities: FrozenSet[str] = frozenset()
    counties: FrozenSet[str] = frozenset()
    shape_kind: ShapeKind = ShapeKind.ZIP_LIST
    geometry: Optional[Any] = None

    def __post_init__(self):
        object.__setattr__(self, 'zip_codes', _normalize_units(self.zip_codes))
        # Cities and counties compare case-insensitively; zip codes are literal
        object.__setattr__(self, 'cities', frozenset(c.casefold() for c in _normalize_units(self.cities)))
        object.__setattr__(self, 'counties', frozenset(c.casefold() for c in _normalize_units(self.counties)))
        object.__setattr__(self, 'shape_kind', parse_shape_kind(self.shape_kind))

    @property
    def unit_count(self) -> int:
        return len(self.zip_codes) + len(self.cities) + len(self.counties)

    @property
    def is_empty(self) -> bool:
        return self.unit_count == 0

    @property
    def has_geometry(self) -> bool:
        return bool(self.geometry)

    @classmethod
    def from_record(cls, area_id: str, coverage_type: str, data: Optional[Mapping[str, Any]]) -> 'CoverageArea':
        """Build from a stored coverage row (coverage_type + JSON data blob)."""
        data = data or {}
        geometry = None
        for key in ('center', 'polygon', 'coordinates', 'fullResults'):
            if data.get(key):
                geometry = data[key]
                break
        return cls(
            area_id=area_id,
            zip_codes=data.get('zipCodes') or data.get('zip_codes'),
            cities=data.get('cities'),
            counties=data.get('counties'),
            shape_kind=coverage_type,
            geometry=geometry,
        )


class QualityLevel(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_IMPROVEMENT = "Needs Improvement"


@dataclass(frozen=True)
class ScoreDetails:
    """Counts and flags the sub-scores were computed from."""
    zip_code_count: int
    city_count: int
    county_count: int
    unit_count: int
    competing_teams: int
    competitor_count_assumed: bool = False
    has_zips: bool = False
    has_cities: bool = False
    has_counties: bool = False
    has_geometry: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'zipCodeCount': self.zip_code_count,
            'cityCount': self.city_count,
            'countyCount': self.county_count,
            'unitCount': self.unit_count,
            'teamsInArea': self.competing_teams,
            'competitorCountAssumed': self.competitor_count_assumed,
            'completenessBreakdown': {
                'hasZips': self.has_zips,
                'hasCities': self.has_cities,
                'hasCounties': self.has_counties,
                'hasCoordinates': self.has_geometry,
            },
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    area_id: str
    completeness_score: float
    coverage_breadth_score: float
    demand_overlap_score: float
    score_details: ScoreDetails
    quality_level: QualityLevel
    competition_level: str
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def quality_score(self) -> float:
        return self.completeness_score + self.coverage_breadth_score + self.demand_overlap_score

    def to_dict(self) -> Dict[str, Any]:
        """Column-shaped dict matching the stored coverage score fields."""
        return {
            'completeness_score': round(self.completeness_score, 2),
            'coverage_breadth_score': round(self.coverage_breadth_score, 2),
            'demand_overlap_score': round(self.demand_overlap_score, 2),
            'quality_score': round(self.quality_score, 2),
            'quality_level': self.quality_level.value,
            'competition_level': self.competition_level,
            'score_details': self.score_details.to_dict(),
            'recommendations': list(self.recommendations),
        }


@dataclass
class BatchScoreResult:
    """Output of scoring many areas: breakdowns plus per-area failures."""
    breakdowns: Dict[str, ScoreBreakdown] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def failed_ids(self) -> List[str]:
        return sorted(self.errors)
