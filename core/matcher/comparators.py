#!/usr/bin/env python3
"""
Field Comparator - Per-type similarity functions.

Every comparison is symmetric in its two values and returns either a
similarity in [0, 1] or an exclusion reason. Exclusion means "not
comparable" and removes the field from both numerator and denominator.
"""

import logging
import math
import threading
from datetime import date, datetime
from typing import Any, FrozenSet, Optional

from dateutil import parser as date_parser

from core.config_loader import ComparatorConfig
from core.exceptions import (
    MalformedAllowedValues, MatchCancelled, SemanticMatchError, SemanticMatchTimeout
)
from core.matcher.models import Comparison, MatchType
from core.matcher.semantic import GuardedSemanticMatcher, SemanticStatus
from core.registry.models import FieldDefinition, FieldType

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({'true', 'yes', 'y', '1'})
_FALSE_STRINGS = frozenset({'false', 'no', 'n', '0'})


def is_unset(value: Any) -> bool:
    """None, blank strings and empty collections count as unset."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _normalize_text(value: Any) -> str:
    return str(value).strip().casefold()


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        folded = value.strip().casefold()
        if folded in _TRUE_STRINGS:
            return True
        if folded in _FALSE_STRINGS:
            return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    return None


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            return None
    return None


def _format_number(value: float) -> str:
    return f"{value:g}"


class FieldComparator:
    """
    Compare one field's values between two entities, dispatched by field_type.
    """

    def __init__(
        self,
        config: Optional[ComparatorConfig] = None,
        semantic_matcher: Optional[GuardedSemanticMatcher] = None,
        semantic_timeout_ms: int = 1500,
    ):
        self.config = config or ComparatorConfig()
        self.semantic_matcher = semantic_matcher
        self.semantic_timeout_ms = semantic_timeout_ms

    def compare(
        self,
        definition: FieldDefinition,
        value_a: Any,
        value_b: Any,
        cancel_event: Optional[threading.Event] = None,
    ) -> Comparison:
        """
        Compare two raw values for a field.

        Raises:
            MatchCancelled: if cancel_event fires while a semantic call is pending
        """
        if is_unset(value_a) or is_unset(value_b):
            return Comparison.excluded("unset")

        issue = definition.allowed_values_issue()
        if issue:
            return Comparison.from_exclusion(MalformedAllowedValues(definition.field_name, issue))

        field_type = definition.field_type
        if field_type is FieldType.BOOLEAN:
            return self._compare_boolean(value_a, value_b)
        elif field_type is FieldType.NUMBER:
            return self._compare_number(definition, value_a, value_b)
        elif field_type is FieldType.SELECT:
            return self._compare_select(definition, value_a, value_b)
        elif field_type is FieldType.MULTI_SELECT:
            return self._compare_multi_select(definition, value_a, value_b)
        elif field_type is FieldType.DATE:
            return self._compare_date(value_a, value_b)
        elif field_type in (FieldType.TEXT, FieldType.TEXTAREA):
            return self._compare_text(definition, value_a, value_b, cancel_event)

        raise ValueError(f"Unhandled field type: {field_type}")

    def _compare_boolean(self, value_a: Any, value_b: Any) -> Comparison:
        a, b = _coerce_bool(value_a), _coerce_bool(value_b)
        if a is None or b is None:
            return Comparison.excluded("invalid boolean value")
        if a == b:
            return Comparison.scored(1.0, MatchType.EXACT, "Both values match")
        return Comparison.scored(0.0, MatchType.EXACT, "Values differ")

    def _compare_number(self, definition: FieldDefinition, value_a: Any, value_b: Any) -> Comparison:
        a, b = _coerce_number(value_a), _coerce_number(value_b)
        if a is None or b is None:
            return Comparison.excluded("invalid numeric value")

        scale = definition.reference_range
        if scale is None:
            scale = self.config.numeric_reference_ranges.get(definition.field_name)
        if scale is None:
            scale = max(abs(a), abs(b))

        difference = abs(a - b)
        similarity = 1.0 - min(1.0, difference / max(self.config.numeric_epsilon, scale))
        if difference == 0:
            return Comparison.scored(1.0, MatchType.EXACT, "Exact numeric match")
        return Comparison.scored(
            similarity,
            MatchType.RANGE,
            f"difference {_format_number(difference)} on scale {_format_number(scale)}",
        )

    def _canonical_choices(self, definition: FieldDefinition):
        return {_normalize_text(v): v for v in definition.allowed_values}

    def _compare_select(self, definition: FieldDefinition, value_a: Any, value_b: Any) -> Comparison:
        choices = self._canonical_choices(definition)
        a = choices.get(_normalize_text(value_a))
        b = choices.get(_normalize_text(value_b))
        if a is None or b is None:
            # Values outside allowed_values are treated as unset
            return Comparison.excluded("value not in allowed_values")
        if a == b:
            return Comparison.scored(1.0, MatchType.EXACT, f"Both selected: {a}")
        first, second = sorted((a, b))
        return Comparison.scored(0.0, MatchType.EXACT, f"Different selections: {first} vs {second}")

    def _as_choice_set(self, choices, value: Any) -> FrozenSet[str]:
        if isinstance(value, str):
            items = [value]
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = value
        else:
            return frozenset()
        resolved = (choices.get(_normalize_text(item)) for item in items if not is_unset(item))
        return frozenset(v for v in resolved if v is not None)

    def _compare_multi_select(self, definition: FieldDefinition, value_a: Any, value_b: Any) -> Comparison:
        choices = self._canonical_choices(definition)
        a = self._as_choice_set(choices, value_a)
        b = self._as_choice_set(choices, value_b)
        if not a or not b:
            return Comparison.excluded("empty selection")

        intersection = a & b
        union = a | b
        similarity = len(intersection) / len(union)
        shared = ", ".join(sorted(intersection)) or "none"
        return Comparison.scored(
            similarity,
            MatchType.OVERLAP,
            f"{len(intersection)} of {len(union)} items match ({shared})",
        )

    def _compare_date(self, value_a: Any, value_b: Any) -> Comparison:
        a, b = _coerce_date(value_a), _coerce_date(value_b)
        if a is None or b is None:
            return Comparison.excluded("invalid date value")

        days = abs((a - b).days)
        horizon = self.config.date_horizon_days
        similarity = max(0.0, 1.0 - days / horizon)
        if days == 0:
            return Comparison.scored(1.0, MatchType.EXACT, "Same date")
        return Comparison.scored(similarity, MatchType.DECAY, f"{days} days apart (horizon {horizon})")

    def _compare_text(
        self,
        definition: FieldDefinition,
        value_a: Any,
        value_b: Any,
        cancel_event: Optional[threading.Event],
    ) -> Comparison:
        a, b = _normalize_text(value_a), _normalize_text(value_b)

        if not definition.use_ai_matching or self.semantic_matcher is None:
            if a == b:
                return Comparison.scored(1.0, MatchType.EXACT, "Exact text match", low_confidence=True)
            return Comparison.scored(0.0, MatchType.EXACT, "Texts differ", low_confidence=True)

        if a == b:
            return Comparison.scored(1.0, MatchType.EXACT, "Exact text match")

        # Canonical order keeps score(A, B) == score(B, A) for asymmetric matchers
        first, second = sorted((str(value_a).strip(), str(value_b).strip()))
        outcome = self.semantic_matcher.similarity(
            first, second, self.semantic_timeout_ms, cancel_event=cancel_event
        )

        if outcome.status is SemanticStatus.CANCELLED:
            raise MatchCancelled(f"semantic match for '{definition.field_name}' cancelled")
        if outcome.status is SemanticStatus.TIMEOUT:
            logger.warning(f"Semantic match timed out for '{definition.field_name}', excluding field")
            return Comparison.from_exclusion(SemanticMatchTimeout(definition.field_name, outcome.error))
        if outcome.status is SemanticStatus.ERROR:
            logger.warning(f"Semantic match failed for '{definition.field_name}': {outcome.error}")
            return Comparison.from_exclusion(SemanticMatchError(definition.field_name, outcome.error))

        return Comparison.scored(
            outcome.similarity,
            MatchType.SEMANTIC,
            f"semantic similarity {outcome.similarity:.2f}",
        )
