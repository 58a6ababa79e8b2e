"""
Schema Lifecycle

Keeps a database's tables in step with the models and records the applied
schema version in the versions table.

Migrations are additive: missing tables are created and missing columns are
added. Nothing is dropped or altered, so running them again is harmless.
"""

import logging
from typing import Optional
from sqlalchemy import inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mining_data.storage.exceptions import SchemaVersionError
from mining_data.storage.models import (
    Base, Version, SCHEMA_VERSION, DATABASE_VERSION_NAME
)

logger = logging.getLogger(__name__)


def get_schema_version(session: Session) -> Optional[Version]:
    """Return the version row for the database schema, or None"""
    return session.execute(
        select(Version).where(Version.name == DATABASE_VERSION_NAME)
    ).scalar_one_or_none()


def _add_missing_columns(connection, table) -> list:
    existing = {c['name'] for c in inspect(connection).get_columns(table.name)}
    preparer = connection.dialect.identifier_preparer
    added = []

    for column in table.columns:
        if column.name in existing or column.primary_key:
            continue
        col_type = column.type.compile(dialect=connection.dialect)
        connection.execute(text(
            f"ALTER TABLE {preparer.format_table(table)} "
            f"ADD COLUMN {preparer.format_column(column)} {col_type}"
        ))
        added.append(column.name)

    return added


def update_schema(engine):
    """
    Create or update the schema according to the models.

    Creates missing tables with their indexes and constraints, then adds
    columns that exist in the models but not in the database. Added columns
    are nullable.
    """
    logger.info("Creating/updating schema...")

    with engine.begin() as connection:
        Base.metadata.create_all(connection, checkfirst=True)

        for table in Base.metadata.sorted_tables:
            added = _add_missing_columns(connection, table)
            if added:
                logger.info(f"Added columns to {table.name}: {', '.join(added)}")


def _store_schema_version(engine, expected_existing: bool):
    # The row is read again inside the write transaction so the check and
    # the write see the same state. uq_versions_name rejects a concurrent
    # insert of the same row.
    try:
        with Session(engine) as session, session.begin():
            schema_version = get_schema_version(session)

            if schema_version is None:
                logger.info(f"Storing schema version as {SCHEMA_VERSION}...")
                session.add(Version(name=DATABASE_VERSION_NAME, version=SCHEMA_VERSION))
            elif schema_version.version < SCHEMA_VERSION:
                logger.info(f"Updating schema version to {SCHEMA_VERSION}...")
                schema_version.version = SCHEMA_VERSION
            elif expected_existing:
                logger.debug(f"Schema version already {schema_version.version}")
            else:
                logger.warning(
                    f"Schema version row appeared during migration "
                    f"(v{schema_version.version}), leaving it unchanged"
                )
    except SQLAlchemyError as e:
        action = "updating" if expected_existing else "creating"
        logger.error(f"Issue {action} schema version: {e}")
        raise SchemaVersionError(f"Issue {action} schema version") from e


def verify_and_update_schema(engine):
    """
    Verify the schema contains all tables, creating or updating them when
    the stored version is missing or older than SCHEMA_VERSION.

    Args:
        engine: SQLAlchemy engine of the active database

    Raises:
        SchemaVersionError: the version row could not be written
    """
    logger.info("Verifying schema...")

    if not inspect(engine).has_table(Version.__tablename__):
        # Table does not exist. An update is definitely needed.
        update_schema(engine)
        _store_schema_version(engine, expected_existing=False)
    else:
        with Session(engine) as session:
            schema_version = get_schema_version(session)
            stored = schema_version.version if schema_version is not None else None

        if stored is None:
            logger.info("No schema version recorded...")
            update_schema(engine)
            _store_schema_version(engine, expected_existing=False)
        elif stored < SCHEMA_VERSION:
            logger.info(f"Found older schema v{stored}...")
            update_schema(engine)
            _store_schema_version(engine, expected_existing=True)
        else:
            logger.debug(f"Schema is current (v{stored})")

    logger.info("Schema verified.")
