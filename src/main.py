#!/usr/bin/env python3
"""
SignServer
Socket server for user sign-up and sign-in against a pooled MySQL database.
Can also create the database schema.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

from auth.passwords import PasswordHasher
from config import ConfigError, DEFAULT_CONFIG_PATH, load_settings
from DatabaseCreator import DatabaseCreator
from pool.connection_pool import ConnectionPool
from server.key_press_detector import KeyPressDetector
from server.main_server import MainServer
from services.dao import Dao


logger = logging.getLogger("signserver")


def build_parser() -> argparse.ArgumentParser:
   parser = argparse.ArgumentParser(
      description='SignServer - sign-up / sign-in socket server (uses config.yaml for defaults)',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
   Examples:
     python main.py
     python main.py --config cfg/config.yaml --port 5000 --pool-size 10
     python main.py --user root --password secret --setup

   Note: Most parameters are read from config.yaml by default.
      Use command-line arguments to override config values.
      Press <ENTER> in the console to stop the server.
      """
   )
   parser.add_argument('--config',
                       default=DEFAULT_CONFIG_PATH,
                       help=f'Path to config file (default: {DEFAULT_CONFIG_PATH})')
   parser.add_argument('--user',
                       help='MySQL user (overrides database.user)')
   parser.add_argument('--password',
                       help='MySQL password (overrides database.password)')
   parser.add_argument('--port',
                       type=int,
                       help='Listening port (overrides server.port)')
   parser.add_argument('--pool-size',
                       type=int,
                       help='Pooled database connections (overrides server.pool_size)')
   parser.add_argument('--setup',
                       action="store_true",
                       help='Create the database and its tables from the SQL file, then exit')
   return parser


def configure_logging(level: str) -> None:
   logging.basicConfig(
      level=getattr(logging, level, logging.INFO),
      format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
   )


def run_setup(settings) -> int:
   sql_file = Path(settings.sql_file)
   if not sql_file.exists():
      logger.error("SQL file not found at: %s", sql_file)
      return 1
   logger.info("Using SQL file: %s", sql_file)
   try:
      success = DatabaseCreator(settings.database).create_from_file(str(sql_file))
   except RuntimeError as e:
      logger.error("Error: %s", e)
      success = False
   return 0 if success else 1


def run_server(settings) -> int:
   pool = ConnectionPool(settings.server.pool_size, settings.database)
   if pool.size == 0:
      logger.error("No database connection could be opened; not starting")
      pool.close_all()
      return 1

   dao = Dao(
      pool,
      hasher=PasswordHasher(settings.bcrypt_rounds),
      country_code=settings.country_code,
   )
   server = MainServer(
      settings.server.host,
      settings.server.port,
      dao,
      pool,
      max_workers=settings.server.max_workers,
      read_timeout=settings.server.read_timeout,
   )

   def handle_signal(signum, frame):
      logger.info("Received %s", signal.Signals(signum).name)
      server.stop()

   signal.signal(signal.SIGINT, handle_signal)
   signal.signal(signal.SIGTERM, handle_signal)
   detector = KeyPressDetector(server.stop)
   detector.start()

   try:
      server.serve_forever()
   except OSError as e:
      logger.error("Server could not start: %s", e)
      pool.close_all()
      return 1
   finally:
      detector.stop()
   return 0


def main(argv=None) -> int:
   args = build_parser().parse_args(argv)

   try:
      settings = load_settings(
         args.config,
         user=args.user,
         password=args.password,
         port=args.port,
         pool_size=args.pool_size,
      )
   except ConfigError as e:
      print(f"Configuration error: {e}", file=sys.stderr)
      return 1

   configure_logging(settings.log_level)

   if args.setup:
      return run_setup(settings)
   return run_server(settings)


if __name__ == "__main__":
   sys.exit(main())
