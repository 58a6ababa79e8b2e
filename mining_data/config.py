"""
Configuration

Settings are read from the environment; a .env file in the working
directory is loaded first when present.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv


@dataclass
class DatabaseSettings:
    host: str = '127.0.0.1'
    port: str = '5432'
    database: str = 'mining'
    user: str = 'postgres'
    password: str = ''
    timezone: str = 'UTC'
    sslmode: str = 'disable'

    @classmethod
    def from_env(cls):
        load_dotenv()
        return cls(
            host=os.getenv('MINING_DB_HOST', cls.host),
            port=os.getenv('MINING_DB_PORT', cls.port),
            database=os.getenv('MINING_DB_NAME', cls.database),
            user=os.getenv('MINING_DB_USER', cls.user),
            password=os.getenv('MINING_DB_PASSWORD', cls.password),
            timezone=os.getenv('MINING_DB_TIMEZONE', cls.timezone),
            sslmode=os.getenv('MINING_DB_SSLMODE', cls.sslmode),
        )


@dataclass
class EmailSettings:
    """SMTP settings. An empty server disables email."""
    user: str = ''
    password: str = ''
    server: str = ''
    port: str = '587'
    to: str = ''
    sender: str = ''

    @property
    def enabled(self) -> bool:
        return bool(self.server)

    @classmethod
    def from_env(cls):
        load_dotenv()
        return cls(
            user=os.getenv('MINING_EMAIL_USER', cls.user),
            password=os.getenv('MINING_EMAIL_PASSWORD', cls.password),
            server=os.getenv('MINING_EMAIL_SERVER', cls.server),
            port=os.getenv('MINING_EMAIL_PORT', cls.port),
            to=os.getenv('MINING_EMAIL_TO', cls.to),
            sender=os.getenv('MINING_EMAIL_FROM', cls.sender),
        )
