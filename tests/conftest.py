"""
Test configuration and fixtures for the Precinct Locator test suite.

Every test gets its own in-memory SQLite database; seeded fixtures load the
bundled seed files through the same bootstrapper the application uses.
"""

import pytest
from fastapi.testclient import TestClient

from precinct_locator.config import Settings
from precinct_locator.database import Database
from precinct_locator.dependencies import limiter
from precinct_locator.ingestion.startup import DatasetBootstrapper
from precinct_locator.main import create_app


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    """Settings isolated from the environment defaults that matter to tests"""
    return Settings(
        database_url="sqlite://",
        log_format="console",
        seed_on_startup=True,
        derive_missing_sub_zones=True,
        version_comparison="semantic",
        nearest_max_squared_degrees=0.0009,
    )


@pytest.fixture(scope="function")
def database():
    """Fresh in-memory database"""
    db = Database("sqlite://").open()
    yield db
    db.close()


@pytest.fixture(scope="function")
def db_session(database):
    """Session on an empty database"""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def seeded_database(database, test_settings):
    """Database loaded with the bundled seed data"""
    DatasetBootstrapper(database, test_settings).run()
    return database


@pytest.fixture(scope="function")
def seeded_session(seeded_database):
    session = seeded_database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(database, test_settings):
    """TestClient whose lifespan seeds the test database"""
    app = create_app(database=database, app_settings=test_settings)
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    limiter.enabled = True


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as HTTP API test"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on file names"""
    for item in items:
        fspath = str(item.fspath)
        if "test_api" in fspath:
            item.add_marker(pytest.mark.api)
        elif "seeding" in fspath or "catalog" in fspath:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
