"""
==================================================
Database connectivity utilities for PostgreSQL.
==================================================

Connection helpers used by the repository layer to execute rendered
queries: connection string building, engine creation and an availability
probe.

Example:
    >>> from utils.database_utils import check_database_available, create_sqlalchemy_engine
    >>>
    >>> if check_database_available():
    ...     engine = create_sqlalchemy_engine()
    ...     repository = DatabaseRepository(engine)
"""

import logging
from urllib.parse import quote_plus

import psycopg2
from psycopg2 import OperationalError
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from core.config import config

logger = logging.getLogger(__name__)


def get_connection_string(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None
) -> str:
    """
    Build PostgreSQL connection string.

    Args:
        host: Database hostname (defaults to config.db_host)
        port: Database port (defaults to config.db_port)
        user: Database user (defaults to config.db_user)
        password: Database password (defaults to config.db_password)
        database: Database name (defaults to config.db_name)

    Returns:
        PostgreSQL connection string with the password URL-quoted
    """
    host = host if host is not None else config.db_host
    port = port if port is not None else config.db_port
    user = user if user is not None else config.db_user
    password = password if password is not None else config.db_password
    database = database if database is not None else config.db_name

    return f"postgresql://{user}:{quote_plus(password)}@{host}:{port}/{database}"


def create_sqlalchemy_engine(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Args:
        host: Database hostname
        port: Database port
        user: Database user
        password: Database password
        database: Database name
        echo: Enable SQL statement logging
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections

    Returns:
        Configured SQLAlchemy Engine
    """
    connection_url = URL.create(
        drivername='postgresql+psycopg2',
        username=user or config.db_user,
        password=password or config.db_password,
        host=host or config.db_host,
        port=port or config.db_port,
        database=database or config.db_name
    )

    return create_engine(
        connection_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True
    )


def check_database_available(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    timeout: int = 5
) -> bool:
    """
    Check if PostgreSQL database is available.

    Args:
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name (defaults to config.db_name)
        timeout: Connection timeout in seconds

    Returns:
        True if database is available, False otherwise
    """
    try:
        conn = psycopg2.connect(
            host=host or config.db_host,
            port=port or config.db_port,
            user=user or config.db_user,
            password=password or config.db_password,
            database=database or config.db_name,
            connect_timeout=timeout
        )
        conn.close()
        return True
    except OperationalError as e:
        logger.debug(f"Database not available: {e}")
        return False
