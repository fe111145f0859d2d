#!/usr/bin/env python3
"""
Registry Snapshot - Immutable, versioned set of field definitions.

Scoring calls receive a snapshot instead of reading live configuration.
Edits produce a new snapshot with a bumped version; existing snapshots
never change, so concurrent scoring is unaffected by admin edits.
"""

import dataclasses
import hashlib
import json
import logging
from types import MappingProxyType
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from core.exceptions import InvalidFieldDefinition, UnknownField
from core.registry.models import FieldDefinition

logger = logging.getLogger(__name__)


def _ordering_key(definition: FieldDefinition):
    # Ungrouped fields sort after grouped ones; field_name breaks remaining ties
    return (
        definition.field_group is None,
        definition.field_group or "",
        definition.sort_order,
        definition.field_name,
    )


class RegistrySnapshot:
    """Read-only lookup over field definitions."""

    def __init__(self, definitions: Iterable[FieldDefinition] = (), version: int = 1):
        by_name = {}
        for definition in definitions:
            if definition.field_name in by_name:
                raise InvalidFieldDefinition(f"Duplicate field_name: {definition.field_name}")
            by_name[definition.field_name] = definition

        self._definitions: Mapping[str, FieldDefinition] = MappingProxyType(by_name)
        self._ordered: tuple = tuple(sorted(by_name.values(), key=_ordering_key))
        self._version = version
        self._fingerprint: Optional[str] = None

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._ordered)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._definitions

    def __repr__(self) -> str:
        return f"RegistrySnapshot(version={self._version}, fields={len(self)})"

    def get(self, field_name: str) -> FieldDefinition:
        try:
            return self._definitions[field_name]
        except KeyError:
            raise UnknownField(field_name) from None

    def active_fields_for(self, entity_kind: str, matchable_only: bool = False) -> List[FieldDefinition]:
        """
        Active fields that apply to an entity kind, in deterministic order.

        Args:
            entity_kind: Entity-kind tag (e.g. 'agent', 'client')
            matchable_only: Keep only fields with matching_weight > 0

        Returns:
            Definitions sorted by (field_group, sort_order, field_name)
        """
        return [
            d for d in self._ordered
            if d.active and d.applies_to(entity_kind)
            and (not matchable_only or d.matching_weight > 0)
        ]

    def matchable_fields(self) -> List[FieldDefinition]:
        return [d for d in self._ordered if d.is_matchable]

    def fields_in_group(self, field_group: str) -> List[FieldDefinition]:
        return [d for d in self._ordered if d.field_group == field_group]

    def with_definition(self, definition: FieldDefinition) -> 'RegistrySnapshot':
        """Return a new snapshot where `definition` is added or replaces its namesake."""
        definitions = dict(self._definitions)
        definitions[definition.field_name] = definition
        return RegistrySnapshot(definitions.values(), version=self._version + 1)

    def deactivate(self, field_name: str) -> 'RegistrySnapshot':
        """Return a new snapshot with the field marked inactive."""
        current = self.get(field_name)
        return self.with_definition(dataclasses.replace(current, active=False))

    def fingerprint(self) -> str:
        """Content hash of all definitions, independent of the version counter."""
        if self._fingerprint is None:
            payload = json.dumps(
                [d.to_dict() for d in sorted(self._ordered, key=lambda d: d.field_name)],
                sort_keys=True,
                default=str,
            )
            self._fingerprint = hashlib.sha256(payload.encode('utf-8')).hexdigest()
        return self._fingerprint

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], version: int = 1) -> 'RegistrySnapshot':
        """
        Build a snapshot from persistence rows, skipping rows that fail validation.

        A bad row is logged and left out so one broken definition cannot block scoring.
        """
        definitions = []
        seen = set()
        for record in records:
            try:
                definition = FieldDefinition.from_record(record)
            except InvalidFieldDefinition as e:
                logger.warning(f"Skipping invalid field definition {record.get('field_name')!r}: {e}")
                continue

            if definition.field_name in seen:
                logger.warning(f"Skipping duplicate field definition {definition.field_name!r}")
                continue
            seen.add(definition.field_name)
            definitions.append(definition)

        logger.debug(f"Built registry snapshot v{version} with {len(definitions)} fields")
        return cls(definitions, version=version)
