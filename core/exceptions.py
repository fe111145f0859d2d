#!/usr/bin/env python3
"""
Engine exceptions.

Only InvalidArea is meant to reach callers of the scorers. Registry data
problems and semantic-matcher failures are caught inside the scoring loop and
turned into per-field exclusions.
"""


class EngineException(Exception):
    """Base exception for scoring engine errors."""
    pass


class InvalidArea(EngineException):
    """Raised when a coverage claim has no geography at all."""

    def __init__(self, area_id: str, message: str = "Coverage area has no zip codes, cities or counties"):
        self.area_id = area_id
        super().__init__(f"{message} (area_id={area_id})")


class InvalidFieldDefinition(EngineException, ValueError):
    """Raised when a field definition violates a construction invariant."""
    pass


class UnknownField(EngineException, KeyError):
    """Raised by the registry when a field name is not defined."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"Unknown field: {self.field_name}"


class FieldExclusion(EngineException):
    """
    A field that could not be compared for one pair.

    Never raised out of the scorers: str(exc) becomes the excluded reason.
    Transient exclusions depend on a remote call and may not recur.
    """
    label = "excluded"
    transient = False

    def __init__(self, field_name: str, detail: str):
        self.field_name = field_name
        self.detail = detail
        super().__init__(f"{self.label}: {detail}")


class MalformedAllowedValues(FieldExclusion):
    """A choice field carries unusable allowed_values."""
    label = "malformed allowed_values"


class SemanticMatchTimeout(FieldExclusion):
    """Semantic matcher did not answer within its deadline."""
    label = "semantic timeout"
    transient = True


class SemanticMatchError(FieldExclusion):
    """Semantic matcher failed or returned an unusable value."""
    label = "semantic error"
    transient = True


class MatchCancelled(EngineException):
    """A batch was cancelled while this pair was still being scored."""
    pass
