"""
Pytest Configuration and Shared Fixtures for the SignServer Test Suite.

This module provides:
- Test environment loading (.env.test)
- An in-memory MySQL backend and pools built on it
- Dao, password hasher and user factory fixtures
"""

import logging
from pathlib import Path

import pytest
from dotenv import load_dotenv

from auth.passwords import PasswordHasher
from config import DatabaseSettings
from pool.connection_pool import ConnectionPool
from services.dao import Dao
from tests.data.factories import UserFactory
from tests.fixtures.fake_mysql import FakeMySQL

# Load test environment
env_file = Path(__file__).parent.parent / ".env.test"
if env_file.exists():
    load_dotenv(env_file)
else:
    load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ============================================================================
# DATABASE BACKEND
# ============================================================================

@pytest.fixture(scope='function')
def backend() -> FakeMySQL:
    """Fresh in-memory MySQL server per test."""
    return FakeMySQL()


@pytest.fixture(scope='session')
def db_settings() -> DatabaseSettings:
    return DatabaseSettings(host="db.test", user="signserver", password="secret", name="signserver")


@pytest.fixture(scope='function')
def pool_factory(backend, db_settings):
    """Builds pools on the fake backend and closes them after the test."""
    pools = []

    def _create(size: int = 3) -> ConnectionPool:
        pool = ConnectionPool(size, db_settings, connector=backend.connect)
        pools.append(pool)
        return pool

    yield _create

    for pool in pools:
        pool.close_all()


@pytest.fixture(scope='function')
def pool(pool_factory) -> ConnectionPool:
    return pool_factory(3)


# ============================================================================
# SERVICES
# ============================================================================

@pytest.fixture(scope='session')
def hasher() -> PasswordHasher:
    """Cheapest bcrypt cost factor; hashing speed is irrelevant here."""
    return PasswordHasher(rounds=4)


@pytest.fixture(scope='function')
def dao(pool, hasher) -> Dao:
    return Dao(pool, hasher=hasher, country_code="ES")


@pytest.fixture(scope='function')
def user_factory():
    UserFactory.reset_sequence()
    return UserFactory


@pytest.fixture(scope='function')
def registered_user(dao, user_factory):
    """A user that has gone through sign-up; returns the request payload."""
    user = user_factory.build()
    response = dao.sign_up(user)
    assert response.type.value == "OK_RESPONSE", response
    return user
