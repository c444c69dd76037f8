"""
=============================================
Configuration management for the query builder.
=============================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

The configuration covers:
- Database connection settings used by the repository layer
- Query rendering defaults (default join column, SQL debug logging)
- Application log level

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> print(f"Connecting to {config.db_host}:{config.db_port}/{config.db_name}")
    >>>
    >>> # Query defaults
    >>> print(f"Joining on {config.default_join_column}, log sql: {config.log_sql}")
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

_TRUTHY = ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        host: PostgreSQL server hostname or IP address
        port: PostgreSQL server port number
        user: Database username
        password: Database password
        database: Database the rendered queries run against
    """

    host: str
    port: int
    user: str
    password: str
    database: str


@dataclass
class QueryConfig:
    """Query rendering settings.

    Attributes:
        default_join_column: Column on the referenced table used by joins and
            distinct counts when none is given (usually the primary key)
        log_sql: If True, every rendered statement is logged at DEBUG level
    """

    default_join_column: str
    log_sql: bool


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with database connection settings
        query: QueryConfig instance with query rendering settings
        log_level: Application log level name

    Example:
        >>> config = Config()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            host=os.getenv('POSTGRES_HOST', 'localhost'),
            port=int(os.getenv('POSTGRES_PORT', '5432')),
            user=os.getenv('POSTGRES_USER', 'postgres'),
            password=os.getenv('POSTGRES_PASSWORD', ''),
            database=os.getenv('POSTGRES_DB', 'postgres')
        )

        self.query = QueryConfig(
            default_join_column=os.getenv('QUERY_DEFAULT_JOIN_COLUMN', 'id'),
            log_sql=os.getenv('QUERY_LOG_SQL', 'false').strip().lower() in _TRUTHY
        )

        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    @property
    def default_join_column(self) -> str:
        """Get the default referenced column for joins and distinct counts."""
        return self.query.default_join_column

    @property
    def log_sql(self) -> bool:
        """Whether rendered SQL should be logged."""
        return self.query.log_sql


# Global configuration instance
config = Config()
