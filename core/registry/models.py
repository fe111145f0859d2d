#!/usr/bin/env python3
"""
Registry Models - Field definitions for attribute matching.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from core.exceptions import InvalidFieldDefinition


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    BOOLEAN = "boolean"


TEXT_TYPES = frozenset({FieldType.TEXT, FieldType.TEXTAREA})
CHOICE_TYPES = frozenset({FieldType.SELECT, FieldType.MULTI_SELECT})


@dataclass(frozen=True)
class FieldDefinition:
    """Administrator-configured description of one comparable attribute."""
    field_name: str
    field_type: FieldType
    matching_weight: int = 0
    entity_types: FrozenSet[str] = field(default_factory=frozenset)
    display_name: str = ""
    description: Optional[str] = None
    allowed_values: Optional[Tuple[Any, ...]] = None
    use_ai_matching: bool = False
    is_required: bool = False
    active: bool = True
    field_group: Optional[str] = None
    sort_order: int = 0
    reference_range: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.field_name, str) or not self.field_name.strip():
            raise InvalidFieldDefinition("field_name must be a non-empty string")

        try:
            field_type = FieldType(self.field_type)
        except ValueError:
            raise InvalidFieldDefinition(
                f"{self.field_name}: unsupported field_type {self.field_type!r}"
            ) from None
        object.__setattr__(self, 'field_type', field_type)

        weight = self.matching_weight
        if isinstance(weight, bool) or not isinstance(weight, int) or not 0 <= weight <= 100:
            raise InvalidFieldDefinition(
                f"{self.field_name}: matching_weight must be an integer in [0, 100], got {weight!r}"
            )

        entity_types = frozenset(self.entity_types or ())
        if not entity_types:
            raise InvalidFieldDefinition(f"{self.field_name}: entity_types must not be empty")
        object.__setattr__(self, 'entity_types', entity_types)

        if self.use_ai_matching and field_type not in TEXT_TYPES:
            raise InvalidFieldDefinition(
                f"{self.field_name}: use_ai_matching is only valid on text/textarea fields"
            )

        if self.allowed_values is not None and not isinstance(self.allowed_values, tuple):
            object.__setattr__(self, 'allowed_values', tuple(self.allowed_values))

        if self.reference_range is not None:
            if isinstance(self.reference_range, bool) or not isinstance(self.reference_range, (int, float)):
                raise InvalidFieldDefinition(
                    f"{self.field_name}: reference_range must be a number, got {self.reference_range!r}"
                )
            try:
                scale = float(self.reference_range)
            except OverflowError:
                raise InvalidFieldDefinition(f"{self.field_name}: reference_range out of range") from None
            if not 0 < scale < float('inf'):
                raise InvalidFieldDefinition(f"{self.field_name}: reference_range must be positive")
            object.__setattr__(self, 'reference_range', scale)

        # Both feed the snapshot ordering key
        if isinstance(self.sort_order, bool) or not isinstance(self.sort_order, int):
            raise InvalidFieldDefinition(
                f"{self.field_name}: sort_order must be an integer, got {self.sort_order!r}"
            )
        if self.field_group is not None and not isinstance(self.field_group, str):
            raise InvalidFieldDefinition(
                f"{self.field_name}: field_group must be a string, got {self.field_group!r}"
            )

        if not self.display_name:
            object.__setattr__(self, 'display_name', self.field_name.replace('_', ' ').title())

    @property
    def is_matchable(self) -> bool:
        return self.active and self.matching_weight > 0

    @property
    def is_low_confidence(self) -> bool:
        """Weighted text field that can only be matched by exact string comparison."""
        return (
            self.field_type in TEXT_TYPES
            and self.matching_weight > 0
            and not self.use_ai_matching
        )

    def applies_to(self, entity_kind: str) -> bool:
        return entity_kind in self.entity_types

    def allowed_values_issue(self) -> Optional[str]:
        """
        Describe why allowed_values are unusable, or None if they are fine.

        Only choice fields (select, multi_select) are checked.
        """
        if self.field_type not in CHOICE_TYPES:
            return None
        if self.allowed_values is None:
            return "missing allowed_values"
        if len(self.allowed_values) == 0:
            return "empty allowed_values"
        if any(not isinstance(v, str) or not v.strip() for v in self.allowed_values):
            return "allowed_values must be non-empty strings"
        folded = [v.strip().casefold() for v in self.allowed_values]
        if len(set(folded)) != len(folded):
            return "duplicate allowed_values"
        return None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'FieldDefinition':
        """Build a definition from a persistence row or plain dict."""
        allowed = record.get('allowed_values')
        if allowed is not None and not isinstance(allowed, (list, tuple)):
            # Non-array values are treated as absent
            allowed = None

        weight = record.get('matching_weight') or 0
        if isinstance(weight, float) and weight.is_integer():
            weight = int(weight)

        return cls(
            field_name=record.get('field_name'),
            field_type=record.get('field_type'),
            matching_weight=weight,
            entity_types=frozenset(record.get('entity_types') or ()),
            display_name=record.get('display_name') or "",
            description=record.get('description'),
            allowed_values=tuple(allowed) if allowed is not None else None,
            use_ai_matching=bool(record.get('use_ai_matching', False)),
            is_required=bool(record.get('is_required', False)),
            active=bool(record.get('active', True)),
            field_group=record.get('field_group'),
            sort_order=record.get('sort_order') or 0,
            reference_range=record.get('reference_range'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['field_type'] = self.field_type.value
        data['entity_types'] = sorted(self.entity_types)
        data['allowed_values'] = list(self.allowed_values) if self.allowed_values is not None else None
        return data
