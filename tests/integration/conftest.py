"""
Fixtures for tests against a real MySQL server.

Configured through DB_TEST_* environment variables (see .env.test); every
test in this package is skipped when DB_TEST_HOST is not set.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict

import pytest

from auth.passwords import PasswordHasher
from config import DatabaseSettings
from DatabaseCreator import DatabaseCreator
from pool.connection_pool import ConnectionPool, open_connection
from services.dao import Dao

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).resolve().parents[2] / "db" / "signserver.sql"


def pytest_collection_modifyitems(config, items):
    skip = pytest.mark.skip(reason="DB_TEST_HOST not set; no MySQL server to test against")
    for item in items:
        if "integration" in item.keywords and not os.getenv("DB_TEST_HOST"):
            item.add_marker(skip)


@pytest.fixture(scope='session')
def test_config() -> Dict[str, Any]:
    """Load test configuration from environment."""
    return {
        'db_host': os.getenv('DB_TEST_HOST', '127.0.0.1'),
        'db_port': int(os.getenv('DB_TEST_PORT', '3306')),
        'db_user': os.getenv('DB_TEST_USER', 'root'),
        'db_password': os.getenv('DB_TEST_PASSWORD', ''),
        'db_name': os.getenv('DB_TEST_NAME', 'signserver_test'),
    }


@pytest.fixture(scope='session')
def mysql_settings(test_config) -> DatabaseSettings:
    settings = DatabaseSettings(
        host=test_config['db_host'],
        port=test_config['db_port'],
        user=test_config['db_user'],
        password=test_config['db_password'],
        name=test_config['db_name'],
    )
    assert DatabaseCreator(settings).create_from_file(str(SCHEMA_FILE))
    logger.debug("✓ Test schema ready in %s", settings.name)
    return settings


@pytest.fixture(scope='function')
def mysql_pool(mysql_settings):
    pool = ConnectionPool(3, mysql_settings)
    yield pool
    pool.close_all()


@pytest.fixture(scope='function')
def mysql_dao(mysql_pool) -> Dao:
    return Dao(mysql_pool, hasher=PasswordHasher(rounds=4))


@pytest.fixture(scope='function')
def login_prefix(mysql_settings):
    """Unique login prefix per test; matching rows are deleted afterwards."""
    prefix = f"it_{uuid.uuid4().hex[:10]}_"
    yield prefix

    conn = open_connection(mysql_settings)
    try:
        cursor = conn.cursor()
        # partner email holds the login; credentials rows go with it (ON DELETE CASCADE)
        cursor.execute("DELETE FROM res_partner WHERE email LIKE %s", (prefix + "%",))
        cursor.close()
    except Exception as e:
        logger.warning(f"Warning cleaning up test users: {e}")
    finally:
        conn.close()
