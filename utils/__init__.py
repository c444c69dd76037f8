"""
==========================
Utility Functions Package.
==========================

Database connectivity helpers for executing rendered queries.

Modules:
    database_utils: PostgreSQL connection strings, engines and availability checks
"""

__version__ = "0.1.0"
__all__ = [
    'check_database_available',
    'get_connection_string',
    'create_sqlalchemy_engine',
]

from .database_utils import (
    check_database_available,
    create_sqlalchemy_engine,
    get_connection_string,
)
