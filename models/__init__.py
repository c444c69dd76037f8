"""
========================================
Entity models for the query builder
========================================

Metadata declarations used to map plain dataclasses (or SQLAlchemy
declarative models) to tables and columns, and the paged response wrapper
returned by the repository layer.

Modules:
    metadata: table/projection decorators, column field specifier, registry
    paging: PagedListResponse

Example:
    >>> from models import column, table
    >>>
    >>> @table("table_2")
    ... class Table2:
    ...     id: int = column("id", primary_key=True)
    ...     table_1_id: int = column("table_1_id")
"""

__version__ = "0.1.0"
__all__ = [
    # Metadata declarations
    'table',
    'projection',
    'column',
    'describe',
    'column_exists',
    'ColumnMetadata',
    'EntityMetadata',
    'MetadataError',
    # Pagination
    'PagedListResponse',
]

from .metadata import (
    ColumnMetadata,
    EntityMetadata,
    MetadataError,
    column,
    column_exists,
    describe,
    projection,
    table,
)
from .paging import PagedListResponse
