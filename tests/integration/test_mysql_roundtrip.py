#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Sign-up and sign-in against a real MySQL server
#
import logging
from contextlib import closing

import pytest
from mysql.connector import errors

from domain.message import MessageType
from domain.user import User
from pool.connection_pool import open_connection
from repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

pytestmark = pytest.mark.integration


def _user(login: str, password: str = "pw-123") -> User:
    return User(login=login, password=password, name="Integration", street="Calle 1", zip_code="28001", city="Madrid")


def _count(settings, login: str) -> int:
    with closing(open_connection(settings)) as conn, closing(conn.cursor()) as cursor:
        cursor.execute("SELECT COUNT(*) FROM res_users WHERE login = %s", (login,))
        return cursor.fetchone()[0]


class TestSignUpAgainstMySQL:
    def test_register_and_sign_in(self, mysql_dao, login_prefix):
        login = login_prefix + "ana"

        signed_up = mysql_dao.sign_up(_user(login))
        signed_in = mysql_dao.sign_in(User(login=login, password="pw-123"))
        wrong = mysql_dao.sign_in(User(login=login, password="nope"))

        assert signed_up.type is MessageType.OK_RESPONSE
        assert signed_up.user.user_id
        assert signed_in.type is MessageType.LOGIN_OK
        assert signed_in.user.name == "Integration"
        assert wrong.type is MessageType.SIGNIN_ERROR
        logger.info("✓ Registered and signed in %s", login)

    def test_duplicate_login(self, mysql_dao, mysql_settings, login_prefix):
        login = login_prefix + "dup"

        first = mysql_dao.sign_up(_user(login))
        second = mysql_dao.sign_up(_user(login))

        assert first.type is MessageType.OK_RESPONSE
        assert second.type is MessageType.LOGIN_EXIST_ERROR
        assert _count(mysql_settings, login) == 1

    def test_failed_credentials_insert_leaves_no_rows(self, mysql_dao, mysql_pool, mysql_settings, login_prefix,
                                                      monkeypatch):
        login = login_prefix + "atomic"

        def fail(self, partner_id, user, password_hash):
            raise errors.DatabaseError(msg="simulated failure after partner insert", errno=1205)

        monkeypatch.setattr(UserRepository, "insert_credentials", fail)

        response = mysql_dao.sign_up(_user(login))

        assert response.type is MessageType.BAD_RESPONSE
        assert _count(mysql_settings, login) == 0
        with closing(open_connection(mysql_settings)) as conn, closing(conn.cursor()) as cursor:
            cursor.execute("SELECT COUNT(*) FROM res_partner WHERE email = %s", (login,))
            assert cursor.fetchone()[0] == 0
        assert mysql_pool.available_count == mysql_pool.size

    def test_inactive_account(self, mysql_dao, mysql_settings, login_prefix):
        login = login_prefix + "off"
        mysql_dao.sign_up(_user(login))
        with closing(open_connection(mysql_settings)) as conn, closing(conn.cursor()) as cursor:
            cursor.execute("UPDATE res_users SET active = 0 WHERE login = %s", (login,))

        response = mysql_dao.sign_in(User(login=login, password="pw-123"))

        assert response.type is MessageType.NON_ACTIVE


class TestRegionsAgainstMySQL:
    def test_seeded_regions(self, mysql_dao):
        response = mysql_dao.get_regions()

        assert response.type is MessageType.COUNTRIES_OK
        assert "Madrid" in response.strings
