"""
Database Connection Manager

Handles database connections, sessions, and operations.
"""

import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from mining_data.storage.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


def _enable_sqlite_savepoints(engine):
    # pysqlite defers BEGIN until the first DML statement, which breaks
    # SAVEPOINT. Let SQLAlchemy emit BEGIN itself.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN")


def build_database_url(host: str, port: str, database: str, user: str,
                       password: str, sslmode: str = 'disable') -> URL:
    """
    Compose a PostgreSQL URL from discrete settings.

    Args:
        host: Database server
        port: Port for the database server
        database: Database name (must already exist)
        user: Login user
        password: Login password
        sslmode: libpq sslmode, e.g. disable, require, verify-full

    Returns:
        SQLAlchemy URL
    """
    return URL.create(
        'postgresql+psycopg2',
        username=user,
        password=password or None,
        host=host,
        port=int(port),
        database=database,
        query={'sslmode': sslmode},
    )


class DatabaseManager:
    """
    Manages a database engine and its sessions.

    One manager per database; pass it to whatever needs storage.
    """

    def __init__(self, database_url, **engine_kwargs):
        """
        Initialize database connection.

        Args:
            database_url: Database URL (string or sqlalchemy URL)
            **engine_kwargs: Extra create_engine arguments
        """
        logger.info("Initializing database connection...")

        if str(database_url).startswith('sqlite'):
            engine_kwargs.setdefault('connect_args', {'check_same_thread': False})
        else:
            engine_kwargs.setdefault('pool_size', 5)
            engine_kwargs.setdefault('max_overflow', 10)
            engine_kwargs.setdefault('pool_pre_ping', True)

        self._engine = create_engine(database_url, echo=False, **engine_kwargs)
        if str(database_url).startswith('sqlite'):
            _enable_sqlite_savepoints(self._engine)

        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.info("Database connection initialized")

    @property
    def engine(self):
        """Get database engine"""
        return self._engine

    @property
    def session_factory(self):
        """Get session factory"""
        return self._session_factory

    def ping(self):
        """Open and close one connection, raising on failure"""
        with self._engine.connect():
            pass

    @contextmanager
    def get_session(self):
        """
        Get a database session (context manager).

        Usage:
            with manager.get_session() as session:
                miner_id = ensure_miner(session, 'rig-01')
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

    def close(self):
        """Close database connections"""
        self._engine.dispose()
        logger.info("Database connections closed")


def connect(host: str, port: str, database: str, user: str, password: str,
            timezone: str, sslmode: str = 'disable') -> DatabaseManager:
    """
    Connect to a PostgreSQL database according to the passed parameters.

    Args:
        host: The database server
        port: The port for the database server
        database: The database to use (must be created beforehand)
        user: The user to use for login
        password: The user's password for login
        timezone: Time zone of the process, e.g. America/Chicago
        sslmode: libpq sslmode

    Returns:
        A connected DatabaseManager

    Raises:
        DatabaseConnectionError: the server could not be reached
    """
    logger.info("Using the following configuration:")
    logger.info(f"Database Server: {host}:{port}")
    logger.info(f"Database: {database}")
    logger.info(f"User: {user}")

    try:
        url = build_database_url(host, port, database, user, password, sslmode)
    except ValueError as e:
        raise DatabaseConnectionError(f"Invalid database port {port!r}") from e

    logger.info(f"Connecting to {url.render_as_string(hide_password=True)}...")
    manager = DatabaseManager(
        url,
        connect_args={'options': f'-c timezone={timezone}'},
    )

    try:
        manager.ping()
    except SQLAlchemyError as e:
        manager.close()
        logger.error(f"Failed to connect to the database server {host}:{port}")
        raise DatabaseConnectionError(
            f"Failed to connect to the database server {host}:{port}"
        ) from e

    logger.info(f"Connected to {host}.")
    return manager
