from database.repositories.base import BaseRepository
from database.repositories.field_definition import FieldDefinitionRepository
from database.repositories.market_coverage import MarketCoverageRepository, SqlCompetitiveDensityIndex

__all__ = [
    'BaseRepository',
    'FieldDefinitionRepository',
    'MarketCoverageRepository',
    'SqlCompetitiveDensityIndex',
]
