"""Registry Module - Field definitions and immutable registry snapshots."""
from core.registry.models import FieldDefinition, FieldType, TEXT_TYPES, CHOICE_TYPES
from core.registry.snapshot import RegistrySnapshot

__all__ = [
    'FieldDefinition', 'FieldType', 'RegistrySnapshot',
    'TEXT_TYPES', 'CHOICE_TYPES',
]
