#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Sign-up, sign-in and directory operations over the connection pool.
#
"""
Sign-up, sign-in and directory operations over the connection pool.

Every operation borrows one pooled connection, runs its statements and
gives the connection back on every path, except a connection whose
rollback failed, which is closed and dropped from the pool. Driver errors never leave this
module; they are translated into a :class:`MessageType`.
"""

import logging
from contextlib import closing, contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator, Optional

from mysql.connector import Error

from auth.passwords import PasswordHasher
from domain.message import Message, MessageType
from domain.user import User
from infrastructure.unit_of_work import UnitOfWork
from pool.connection_pool import ConnectionPool
from repositories.error_handling import is_duplicate_key
from repositories.region_repository import RegionRepository
from repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)


@dataclass
class Lease:
    """A borrowed connection; set ``discard`` to close it instead of returning it."""
    connection: Any
    discard: bool = False


class Dao:
    """
    Data access for the sign server.

    Args:
        pool: Shared connection pool
        hasher: Password hasher (bcrypt)
        country_code: Country whose regions ``get_regions`` lists
    """

    def __init__(self, pool: ConnectionPool, hasher: Optional[PasswordHasher] = None, country_code: str = "ES"):
        self.pool = pool
        self.hasher = hasher or PasswordHasher()
        self.country_code = country_code

    @contextmanager
    def _borrowed_connection(self) -> Iterator[Lease]:
        """
        Yields a lease on a valid pooled connection (``lease.connection``
        is None when there is none).

        The connection goes back to the pool when the block ends, whatever
        happened inside it, unless the lease was marked for discard.
        """
        connection = self.pool.acquire()
        lease = Lease(connection)
        try:
            if connection is not None and not self._is_valid(connection):
                logger.warning("Pooled connection failed the validity probe")
                lease.connection = None
            yield lease
        finally:
            if connection is not None:
                if lease.discard:
                    self.pool.discard(connection)
                else:
                    self.pool.release(connection)

    @staticmethod
    def _is_valid(connection) -> bool:
        try:
            return bool(connection.is_connected())
        except Error:
            return False

    @staticmethod
    def _is_encodable(*values: Optional[str]) -> bool:
        """False if any value holds text MySQL cannot store (e.g. a lone surrogate)."""
        try:
            for value in values:
                if value is not None:
                    value.encode("utf-8")
        except UnicodeEncodeError:
            return False
        return True

    # ------------------------------------------------------------------
    # Sign-up
    # ------------------------------------------------------------------
    def sign_up(self, user: User) -> Message:
        """
        Registers a user as one partner row plus one credentials row.

        Both inserts run in a single transaction; nothing is kept unless
        both succeed.
        """
        if not user.login or not user.password:
            return Message(MessageType.BAD_RESPONSE, "login and password are required")
        if not self._is_encodable(user.login, user.password, user.name, user.street, user.zip_code, user.city):
            return Message(MessageType.BAD_RESPONSE, "fields must be valid UTF-8 text")

        try:
            password_hash = self.hasher.hash(user.password)
        except ValueError as e:
            return Message(MessageType.BAD_RESPONSE, str(e))

        try:
            with self._borrowed_connection() as lease:
                if lease.connection is None:
                    logger.warning("Sign-up for %s: no valid connection available", user.login)
                    return Message(MessageType.CONNECTION_ERROR, "no database connection available")
                return self._insert_user(lease, user, password_hash)
        except Error as e:
            if is_duplicate_key(e):
                logger.info("Sign-up rejected, login already exists: %s", user.login)
                return Message(MessageType.LOGIN_EXIST_ERROR, "login already exists")
            logger.error("Sign-up transaction failed for %s: %s", user.login, e)
            return Message(MessageType.BAD_RESPONSE, "registration failed")

    def _insert_user(self, lease: Lease, user: User, password_hash: str) -> Message:
        uow = UnitOfWork(lease.connection)
        try:
            with uow:
                users = UserRepository(uow)

                partner_id = users.insert_partner(user)
                if partner_id is None:
                    logger.error("Partner insert wrote no row for %s", user.login)
                    return Message(MessageType.SQL_ERROR, "partner row not created")

                user_id = users.insert_credentials(partner_id, user, password_hash)
                if user_id is None:
                    logger.error("Credentials insert wrote no row for %s", user.login)
                    return Message(MessageType.SQL_ERROR, "credentials row not created")

                uow.commit()
        finally:
            # closing the connection drops the transaction the rollback could not undo
            lease.discard = uow.rollback_failed

        logger.info("User registered: %s (id %s)", user.login, user_id)
        return Message(MessageType.OK_RESPONSE, replace(user, user_id=user_id, password=None))

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------
    def _lookup(self, login: str):
        """
        Returns (record, connection_ok).

        Raises:
            Error: Backing-store failure
        """
        with self._borrowed_connection() as lease:
            if lease.connection is None:
                return None, False
            with closing(lease.connection.cursor()) as cursor:
                return UserRepository(cursor).find_by_login(login), True

    def _authenticate(self, user: User):
        """Returns (record or None, connection_ok); raises Error on store faults."""
        record, connection_ok = self._lookup(user.login)
        if not connection_ok:
            return None, False
        # verified after the connection is back in the pool
        stored_hash = record["password_hash"] if record else None
        if not self.hasher.verify(user.password, stored_hash):
            return None, True
        return record, True

    def sign_in(self, user: User) -> Message:
        """
        Checks login and password.

        An unknown login and a wrong password give the same SIGNIN_ERROR.
        """
        if not user.login or user.password is None:
            return Message(MessageType.BAD_RESPONSE, "login and password are required")
        if not self._is_encodable(user.login, user.password):
            return Message(MessageType.BAD_RESPONSE, "login and password must be valid UTF-8 text")

        try:
            record, connection_ok = self._authenticate(user)
        except Error as e:
            logger.error("Sign-in lookup failed for %s: %s", user.login, e)
            return Message(MessageType.BAD_RESPONSE, "sign-in failed")

        if not connection_ok:
            logger.warning("Sign-in for %s: no valid connection available", user.login)
            return Message(MessageType.CONNECTION_ERROR, "no database connection available")
        if record is None:
            logger.info("Sign-in failed for %s", user.login)
            return Message(MessageType.SIGNIN_ERROR, "invalid login or password")
        if not record["active"]:
            logger.info("Sign-in for inactive account %s", user.login)
            return Message(MessageType.NON_ACTIVE)

        return Message(MessageType.LOGIN_OK, User(name=record["name"], active=True))

    def get_user(self, user: User) -> Message:
        """Full profile of an authenticated, active user."""
        if not user.login or user.password is None:
            return Message(MessageType.BAD_RESPONSE, "login and password are required")
        if not self._is_encodable(user.login, user.password):
            return Message(MessageType.BAD_RESPONSE, "login and password must be valid UTF-8 text")

        try:
            record, connection_ok = self._authenticate(user)
        except Error as e:
            logger.error("Profile lookup failed for %s: %s", user.login, e)
            return Message(MessageType.BAD_RESPONSE, "profile lookup failed")

        if not connection_ok:
            logger.warning("Profile for %s: no valid connection available", user.login)
            return Message(MessageType.GET_FAIL, "no database connection available")
        if record is None or not record["active"]:
            return Message(MessageType.GET_FAIL, "profile not available")

        profile = User(
            login=record["login"],
            password=user.password,
            name=record["name"],
            street=record["street"],
            zip_code=record["zip_code"],
            city=record["city"],
            active=True,
            user_id=record["user_id"],
        )
        return Message(MessageType.GET_OK, profile)

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------
    def get_regions(self) -> Message:
        """Region names of the configured country, sorted by name."""
        try:
            with self._borrowed_connection() as lease:
                if lease.connection is None:
                    logger.warning("Region list: no valid connection available")
                    return Message(MessageType.COUNTRIES_ERROR, "no database connection available")
                with closing(lease.connection.cursor()) as cursor:
                    names = RegionRepository(cursor).list_names(self.country_code)
        except Error as e:
            logger.error("Region list failed: %s", e)
            return Message(MessageType.COUNTRIES_ERROR, "region lookup failed")

        return Message(MessageType.COUNTRIES_OK, names)
