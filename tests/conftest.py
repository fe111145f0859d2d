"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.registry import FieldDefinition, RegistrySnapshot
from tests import get_test_db_url


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def basic_registry():
    """Two weighted fields shared by agents and clients."""
    return RegistrySnapshot([
        FieldDefinition(
            field_name='years_experience',
            field_type='number',
            matching_weight=50,
            entity_types=frozenset({'agent', 'client'}),
            reference_range=20,
        ),
        FieldDefinition(
            field_name='specialization',
            field_type='select',
            matching_weight=50,
            entity_types=frozenset({'agent', 'client'}),
            allowed_values=('luxury', 'residential', 'commercial'),
        ),
    ])


@pytest.fixture
def db_session():
    """Session bound to a fresh schema; in-memory SQLite unless TEST_DATABASE_URL is set."""
    from database.models import Base

    engine = create_engine(get_test_db_url())
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()
