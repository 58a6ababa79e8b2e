#!/usr/bin/env python3
"""
Database Initialization Script

Connects using the MINING_DB_* settings, then creates or updates the schema
to the version the models expect. Exits with status 1 if either step fails,
emailing the failure when MINING_EMAIL_SERVER is set.
"""

import sys
import os
import logging

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from mining_data.config import DatabaseSettings, EmailSettings
from mining_data.notifications.email_sender import send_notification
from mining_data.storage.database import connect
from mining_data.storage.exceptions import StorageError
from mining_data.storage.schema import verify_and_update_schema

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Initialize database"""
    settings = DatabaseSettings.from_env()
    email_settings = EmailSettings.from_env()

    try:
        manager = connect(
            settings.host,
            settings.port,
            settings.database,
            settings.user,
            settings.password,
            settings.timezone,
            sslmode=settings.sslmode,
        )
    except StorageError as e:
        logger.error(f"Failed to initialize database: {e}")
        send_notification(email_settings, "Database initialization failed", str(e))
        return 1

    try:
        verify_and_update_schema(manager.engine)
    except StorageError as e:
        logger.error(f"Failed to initialize database: {e}")
        send_notification(email_settings, "Database initialization failed", str(e))
        return 1
    finally:
        manager.close()

    logger.info("Database is ready to use!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
