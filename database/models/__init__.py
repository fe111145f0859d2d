from .base import Base
from .field_definition import FieldDefinitionRecord
from .market_coverage import MarketCoverageRecord

__all__ = [
    'Base',
    'FieldDefinitionRecord',
    'MarketCoverageRecord',
]
