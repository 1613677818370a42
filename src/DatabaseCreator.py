#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Module for DatabaseCreator.
#
import logging
from typing import Callable, Optional

from mysql.connector import Error

from config import DatabaseSettings
from pool.connection_pool import open_connection


logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("res_partner", "res_users", "res_country", "res_country_state")


def split_sql_statements(sql_content: str) -> list[str]:
   """Split an SQL script on trailing semicolons, skipping comments and blank lines."""
   statements = []
   current_statement = []

   for line in sql_content.split('\n'):
      stripped = line.strip()
      if not stripped or stripped.startswith('--') or stripped.startswith('/*!'):
         continue

      current_statement.append(line)

      if stripped.endswith(';'):
         statement = '\n'.join(current_statement)
         if statement.strip():
            statements.append(statement)
         current_statement = []

   return statements


class DatabaseCreator:
   """Create the sign server schema from an SQL file."""

   def __init__(self, settings: DatabaseSettings, connector: Optional[Callable] = None):
      self.settings = settings
      self.connector = connector

   def create_database(self) -> bool:
      """Create the database if it doesn't exist."""
      connection = None
      try:
         connection = open_connection(self.settings, use_database=False, connector=self.connector)
         cursor = connection.cursor()
         cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{self.settings.name}` "
            f"DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
         )
         logger.info("Database '%s' created or already exists", self.settings.name)
         cursor.close()
         return True
      except Error as e:
         logger.error("Error creating database: %s", e)
         return False
      finally:
         if connection is not None:
            connection.close()

   def execute_sql_file(self, sql_file_path: str) -> bool:
      """
      Execute SQL commands from file.

      Args:
         sql_file_path: Path to the SQL file.

      Returns:
         True if all statements were sent (individual failures are logged), False otherwise.
      """
      connection = None
      try:
         with open(sql_file_path, 'r', encoding='utf-8') as file:
            statements = split_sql_statements(file.read())

         connection = open_connection(self.settings, connector=self.connector)
         cursor = connection.cursor()
         total = len(statements)
         executed = 0

         logger.info("Executing %s SQL statements...", total)
         for i, statement in enumerate(statements, 1):
            try:
               cursor.execute(statement)
               executed += 1
            except Error as e:
               logger.warning("Warning executing statement %s: %s", i, e)
               logger.warning("Statement: %s...", statement[:100])

         connection.commit()
         cursor.close()

         logger.info("Successfully executed %s of %s SQL statements", executed, total)
         return True

      except FileNotFoundError:
         logger.error("SQL file not found: %s", sql_file_path)
         return False
      except Error as e:
         logger.error("Error executing SQL file: %s", e)
         return False
      finally:
         if connection is not None:
            connection.close()

   def missing_tables(self) -> list[str]:
      """
      Check that every table the server queries exists.

      Returns:
         Names of required tables not present (all of them if the check fails).
      """
      connection = None
      try:
         connection = open_connection(self.settings, connector=self.connector)
         cursor = connection.cursor()
         cursor.execute("SHOW TABLES")
         present = {row[0] for row in cursor.fetchall()}
         cursor.close()
      except Error as e:
         logger.error("Error checking schema: %s", e)
         return list(REQUIRED_TABLES)
      finally:
         if connection is not None:
            connection.close()

      missing = [table for table in REQUIRED_TABLES if table not in present]
      if missing:
         logger.error("Schema incomplete, missing tables: %s", ", ".join(missing))
      return missing

   def create_from_file(self, sql_file_path: str) -> bool:
      """
      Complete workflow: create database, then execute the SQL file in it.

      Returns:
         True on success, False on failure.
      """
      logger.info("%s", "=" * 100)
      logger.info("SignServer Database Creation")
      logger.info("%s", "=" * 100)

      if not self.create_database():
         raise RuntimeError("Failed to create database")

      success = self.execute_sql_file(sql_file_path) and not self.missing_tables()

      if success:
         logger.info("Database '%s' created successfully!", self.settings.name)
      else:
         logger.error("Database creation failed")

      return success
