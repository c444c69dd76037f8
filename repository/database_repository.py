"""
=================================================
Data access for queries built with QueryBuilder.
=================================================

Executes the text rendered by a QueryBuilder over SQLAlchemy and turns the
rows into entities, scalars, paged responses or pandas DataFrames.

Rows are mapped back to entity fields by result column name: a column is
matched against the field name first (the select list aliases columns to
field names), then the column name, both case-insensitively since
PostgreSQL folds unquoted aliases to lower case.

Example:
    >>> from repository import DatabaseRepository
    >>> from utils.database_utils import create_sqlalchemy_engine
    >>>
    >>> repository = DatabaseRepository(create_sqlalchemy_engine())
    >>> query = QueryBuilder().select_from(Table1).limit(10)
    >>> rows = repository.get_list(query, Table1)
    >>> page = repository.get_paged_list_response(query, Table1)
    >>> total = repository.get_record_count(query)
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, List, Mapping, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from models.metadata import describe
from models.paging import PagedListResponse
from utils.database_utils import create_sqlalchemy_engine

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Exception raised when executing a rendered query fails."""
    pass


def materialize(row: Mapping[str, Any], entity: type) -> Any:
    """Build an ``entity`` instance from one result row.

    Fields without a matching result column are left to the entity's defaults.
    """
    values = {str(key).lower(): value for key, value in row.items()}
    kwargs = {}
    for col in describe(entity).columns:
        for key in (col.field_name.lower(), col.column_name.lower()):
            if key in values:
                kwargs[col.field_name] = values[key]
                break
    return entity(**kwargs)


class DatabaseRepository:
    """Runs QueryBuilder output against a database.

    Every method accepts an open SQLAlchemy ``connection``; without one a
    connection is taken from the repository's engine for the duration of
    the call.

    Attributes:
        engine: SQLAlchemy engine used when no connection is supplied
    """

    def __init__(self, engine: Optional[Engine] = None):
        """Initialize the repository.

        Args:
            engine: Engine to open connections from; created from config on
                first use if omitted
        """
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_sqlalchemy_engine()
        return self._engine

    @contextmanager
    def _get_connection(self, connection: Optional[Connection] = None):
        """Yield ``connection`` or a pooled one that is closed afterwards."""
        if connection is not None:
            yield connection
            return

        with self.engine.connect() as conn:
            yield conn

    def _fetch_rows(self, sql: str, connection: Optional[Connection]) -> List[Mapping[str, Any]]:
        try:
            with self._get_connection(connection) as conn:
                return list(conn.execute(text(sql)).mappings())
        except SQLAlchemyError as e:
            logger.error(f"Failed to execute query: {e}")
            raise RepositoryError(f"Failed to execute query: {e}") from e

    def _fetch_scalar(self, sql: str, connection: Optional[Connection]) -> Any:
        try:
            with self._get_connection(connection) as conn:
                return conn.execute(text(sql)).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Failed to execute scalar query: {e}")
            raise RepositoryError(f"Failed to execute scalar query: {e}") from e

    def get_list(
        self,
        query,
        entity: Optional[type] = None,
        connection: Optional[Connection] = None
    ) -> List[Any]:
        """
        Execute ``query.render_select()`` and return the rows.

        Args:
            query: Configured QueryBuilder
            entity: Class to materialize rows into; plain dicts when omitted
            connection: Optional open connection

        Returns:
            List of entities (or dicts)

        Raises:
            RepositoryError: If the database rejects the query
        """
        rows = self._fetch_rows(query.render_select(), connection)
        logger.debug(f"Fetched {len(rows)} rows")
        if entity is None:
            return [dict(row) for row in rows]
        return [materialize(row, entity) for row in rows]

    def get_paged_list_response(
        self,
        query,
        entity: Optional[type] = None,
        connection: Optional[Connection] = None,
        convert: Optional[Callable[[List[Any]], List[Any]]] = None
    ) -> PagedListResponse:
        """
        Execute the select and wrap the rows with the query's offset and limit.

        Args:
            query: Configured QueryBuilder
            entity: Class to materialize rows into
            connection: Optional open connection
            convert: Optional function transforming the fetched list
                (e.g. entities to API models)

        Returns:
            PagedListResponse with start_at/max_results taken from the query
        """
        results = self.get_list(query, entity, connection)
        if convert is not None:
            results = convert(results)
        return PagedListResponse.from_query(query, results)

    def get_single_value(self, query, connection: Optional[Connection] = None) -> Any:
        """
        Execute the select and return the first column of the first row.

        Meant for queries selecting a single column, e.g.
        ``select_from(Table1, 'name')``.
        """
        return self._fetch_scalar(query.render_select(), connection)

    def get_record_count(self, query, connection: Optional[Connection] = None) -> Optional[int]:
        """Execute ``query.render_count()`` and return the count."""
        return self._fetch_scalar(query.render_count(), connection)

    def get_distinct_record_count(
        self,
        query,
        connection: Optional[Connection] = None,
        column_name: Optional[str] = None
    ) -> Optional[int]:
        """Execute ``query.render_distinct_count(column_name)`` and return the count."""
        return self._fetch_scalar(query.render_distinct_count(column_name), connection)

    def get_frame(self, query, connection: Optional[Connection] = None) -> pd.DataFrame:
        """
        Execute the select into a pandas DataFrame.

        Raises:
            RepositoryError: If the database rejects the query
        """
        sql = query.render_select()
        try:
            with self._get_connection(connection) as conn:
                return pd.read_sql(text(sql), conn)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load query into DataFrame: {e}")
            raise RepositoryError(f"Failed to load query into DataFrame: {e}") from e

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
