"""
============================
Data access layer package.
============================

Executes queries rendered by sql.query_builder and materializes the results.

Modules:
    database_repository: DatabaseRepository, RepositoryError
"""

__version__ = "0.1.0"
__all__ = ['DatabaseRepository', 'RepositoryError', 'materialize']

from .database_repository import DatabaseRepository, RepositoryError, materialize
