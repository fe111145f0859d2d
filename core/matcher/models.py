#!/usr/bin/env python3
"""
Matcher Models - Data structures for attribute matching.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from core.exceptions import FieldExclusion


class MatchType(str, Enum):
    EXACT = "exact"
    OVERLAP = "overlap"
    RANGE = "range"
    DECAY = "decay"
    SEMANTIC = "semantic"
    NONE = "none"


class InsufficientData(Enum):
    """Sentinel for a match with no comparable weighted fields."""
    TOKEN = "insufficient_data"

    def __repr__(self) -> str:
        return "INSUFFICIENT_DATA"


INSUFFICIENT_DATA = InsufficientData.TOKEN


@dataclass(frozen=True)
class Comparison:
    """Outcome of comparing one field between two entities."""
    similarity: Optional[float]
    match_type: MatchType = MatchType.NONE
    details: str = ""
    low_confidence: bool = False
    excluded_reason: Optional[str] = None
    transient: bool = False

    @property
    def included(self) -> bool:
        return self.similarity is not None

    @classmethod
    def scored(cls, similarity: float, match_type: MatchType, details: str = "",
               low_confidence: bool = False) -> 'Comparison':
        return cls(
            similarity=max(0.0, min(1.0, float(similarity))),
            match_type=match_type,
            details=details,
            low_confidence=low_confidence,
        )

    @classmethod
    def excluded(cls, reason: str, transient: bool = False) -> 'Comparison':
        return cls(similarity=None, details=reason, excluded_reason=reason, transient=transient)

    @classmethod
    def from_exclusion(cls, exclusion: FieldExclusion) -> 'Comparison':
        return cls.excluded(str(exclusion), transient=exclusion.transient)


@dataclass(frozen=True)
class FieldScore:
    """Per-field entry of a MatchResult breakdown."""
    field_name: str
    weight: int
    similarity: float
    contribution: float
    match_type: MatchType
    details: str = ""
    low_confidence: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field_name': self.field_name,
            'weight': self.weight,
            'similarity': self.similarity,
            'contribution': self.contribution,
            'match_type': self.match_type.value,
            'details': self.details,
            'low_confidence': self.low_confidence,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FieldScore':
        return cls(
            field_name=data['field_name'],
            weight=data['weight'],
            similarity=data['similarity'],
            contribution=data['contribution'],
            match_type=MatchType(data['match_type']),
            details=data.get('details', ""),
            low_confidence=data.get('low_confidence', False),
        )


@dataclass(frozen=True)
class MatchResult:
    """Weighted compatibility score between two entities."""
    overall: Union[float, InsufficientData]
    breakdown: Dict[str, FieldScore] = field(default_factory=dict)
    total_weight_used: int = 0
    excluded: Dict[str, str] = field(default_factory=dict)
    warnings: Tuple[str, ...] = ()
    category_scores: Dict[str, float] = field(default_factory=dict)
    registry_version: int = 0
    # Fields excluded by a failure that may not recur (semantic timeout or error)
    transient_exclusions: Tuple[str, ...] = ()

    @property
    def is_insufficient(self) -> bool:
        return self.overall is INSUFFICIENT_DATA

    @property
    def score(self) -> Optional[float]:
        """Overall score, or None when no score could be computed."""
        return None if self.is_insufficient else self.overall

    @property
    def low_confidence_fields(self) -> List[str]:
        return [name for name, fs in self.breakdown.items() if fs.low_confidence]

    @property
    def is_cacheable(self) -> bool:
        return not self.transient_exclusions

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.score,
            'insufficient_data': self.is_insufficient,
            'breakdown': [fs.to_dict() for fs in self.breakdown.values()],
            'total_weight_used': self.total_weight_used,
            'excluded': dict(self.excluded),
            'warnings': list(self.warnings),
            'category_scores': dict(self.category_scores),
            'registry_version': self.registry_version,
            'transient_exclusions': list(self.transient_exclusions),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MatchResult':
        overall = INSUFFICIENT_DATA if data.get('insufficient_data') else data['overall']
        breakdown = {}
        for entry in data.get('breakdown', []):
            fs = FieldScore.from_dict(entry)
            breakdown[fs.field_name] = fs
        return cls(
            overall=overall,
            breakdown=breakdown,
            total_weight_used=data.get('total_weight_used', 0),
            excluded=dict(data.get('excluded', {})),
            warnings=tuple(data.get('warnings', ())),
            category_scores=dict(data.get('category_scores', {})),
            registry_version=data.get('registry_version', 0),
            transient_exclusions=tuple(data.get('transient_exclusions', ())),
        )


@dataclass(frozen=True)
class CandidateEntity:
    """An entity offered for ranking, identified by an id owned by the caller."""
    entity_id: str
    attributes: Mapping[str, Any]


@dataclass(frozen=True)
class RankedMatch:
    entity_id: str
    result: MatchResult

    def sort_key(self):
        # Score desc, evidence desc, id asc; insufficient results sort last
        if self.result.is_insufficient:
            return (1, 0.0, 0, self.entity_id)
        return (0, -self.result.overall, -self.result.total_weight_used, self.entity_id)
