"""
Pytest configuration and shared fixtures.
"""

import pytest
import numpy as np
from datetime import date
import sys
import os

# Add backend to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'backend'))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


@pytest.fixture
def engine():
    """Fresh in-memory SQLite store per test."""
    from database import create_tables, drop_tables

    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=test_engine)
    yield test_engine
    drop_tables(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Database session bound to the in-memory store."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fk_engine():
    """In-memory SQLite store with foreign key enforcement switched on."""
    from sqlalchemy import event
    from database import create_tables, drop_tables

    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    create_tables(bind=test_engine)
    yield test_engine
    drop_tables(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def fk_db(fk_engine):
    """Session on a store that rejects dangling foreign keys."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=fk_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient with get_db pointed at the in-memory store."""
    from fastapi.testclient import TestClient
    from main import app
    from database import get_db

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store():
    from services.store_service import StoreService
    return StoreService()


@pytest.fixture
def queries():
    from services.query_service import QueryService
    return QueryService()


@pytest.fixture
def rng():
    """Seeded generator so seeding tests are repeatable."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_villages():
    """Create sample village attributes for testing."""
    return [
        {
            "name": "Latur Village 1",
            "block": "Block A",
            "district": "Latur",
            "state": "Maharashtra",
            "population": 1200,
            "latitude": 18.41,
            "longitude": 76.56,
            "water_source": "Borewell",
            "base_water_demand": 24000
        },
        {
            "name": "Beed Village 1",
            "block": "Block B",
            "district": "Beed",
            "state": "Maharashtra",
            "population": 800,
            "latitude": 18.99,
            "longitude": 75.76,
            "water_source": "Open Well",
            "base_water_demand": 16000
        },
        {
            "name": "Jodhpur Village 1",
            "block": "Block C",
            "district": "Jodhpur",
            "state": "Rajasthan",
            "population": 3000,
            "latitude": 26.24,
            "longitude": 73.02,
            "water_source": "Borewell",
            "base_water_demand": 60000
        }
    ]


@pytest.fixture
def sample_metric():
    """Create sample drought metric values for testing."""
    return {
        "date": date(2024, 4, 15),
        "rainfall_deviation": -42.5,
        "groundwater_level": 38.2,
        "groundwater_velocity": -1.2,
        "water_stress_index": 82.0
    }


@pytest.fixture
def sample_tanker():
    """Create sample tanker attributes for testing."""
    return {
        "registration_no": "MH-24-ZZ-0001",
        "capacity_liters": 10000,
        "assigned_state": "Maharashtra",
        "assigned_district": "Latur",
        "assigned_block": "Block A",
        "assigned_village_id": None,
        "source_point": "Manjara Dam",
        "status": "Available"
    }


@pytest.fixture
def seeded_villages(db, store, sample_villages):
    """Insert the sample villages and return their ids in order."""
    return [store.create_village(db, v) for v in sample_villages]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names."""
    for item in items:
        # Mark tests with 'integration' in the name as integration tests
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)

        # Mark tests with 'slow' in the name as slow tests
        if "slow" in item.name:
            item.add_marker(pytest.mark.slow)

        # Full nationwide seeding inserts a few hundred rows
        if "seed" in item.name.lower():
            item.add_marker(pytest.mark.slow)
