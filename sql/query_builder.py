"""
=============================
Fluent SQL query builder.
=============================

Composes SELECT and COUNT statements from entity metadata: the main table,
inner joins, WHERE predicates, ordering, pagination and the select list are
configured through chained calls, then rendered to text.

The builder is generative: every configuration call returns a NEW builder
holding an updated, immutable QueryState, so a partially configured builder
can be safely shared as the base of several queries.

Configuration:
- select_from: Main table (and optionally the columns to select)
- inner_join: Join a table to the main table or to a previously joined one
- where / where_or / where_not / where_not_in / where_between: Predicates
- order_by, offset, limit, distinct_on: Ordering and pagination
- return_as: Select list shaped after a projection type

Rendering:
- render_select: Full select statement
- render_count: count(*) (or count(distinct ...) with distinct_on)
- render_distinct_count: count(distinct(<column>)) on the first table declaring it

Usage:
    from sql.query_builder import Order, QueryBuilder

    sql = (
        QueryBuilder()
        .select_from(Table1)
        .inner_join(Table2, 'table_1_id')
        .order_by(Table1, 'created_date', Order.DESCENDING)
        .offset(5)
        .limit(10)
        .render_select()
    )
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple

from core.config import config
from models.metadata import (
    column_exists,
    describe,
    lookup,
    strip_cast,
    table_metadata,
)
from sql.descriptors import (
    FieldDescriptor,
    JoinDescriptor,
    TableDescriptor,
    allocate_alias,
)
from sql.literals import render_literal, render_literal_list

logger = logging.getLogger(__name__)


class QueryBuilderError(ValueError):
    """Exception raised when a query is configured inconsistently.

    Raised for unknown columns, tables not part of the query, projection
    fields that no table provides, or rendering before select_from.
    """
    pass


class Operand(Enum):
    """Comparison operators for where / where_or."""

    EQUALS = '='
    GREATER_THAN = '>'
    GREATER_THAN_OR_EQUALS = '>='
    LESS_THAN = '<'
    LESS_THAN_OR_EQUALS = '<='
    LIKE = 'LIKE'
    IS_NULL = 'is null'


class Order(Enum):
    """Sort direction for order_by."""

    ASCENDING = 'asc'
    DESCENDING = 'desc'


class CaseComparison(Enum):
    """Case handling for where; IGNORE_CASE wraps both sides in UPPER()."""

    NONE = 'none'
    IGNORE_CASE = 'ignore_case'


@dataclass(frozen=True)
class QueryState:
    """Everything a builder has been configured with.

    Attributes:
        main_table: Table set by select_from
        joins: Joined tables in registration order
        fields: Default select list, and the pool return_as resolves against
        return_fields: Select list set by return_as (overrides fields)
        predicates: Rendered WHERE fragments, AND-ed at render time
        order_by: Rendered ORDER BY clause
        limit: LIMIT value
        offset: OFFSET value
        distinct_on: Qualified column for DISTINCT ON / count(distinct)
    """

    main_table: Optional[TableDescriptor] = None
    joins: Tuple[JoinDescriptor, ...] = ()
    fields: Tuple[FieldDescriptor, ...] = ()
    return_fields: Optional[Tuple[FieldDescriptor, ...]] = None
    predicates: Tuple[str, ...] = ()
    order_by: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct_on: Optional[str] = None


def _table_label(entity: Any) -> str:
    metadata = lookup(entity)
    if metadata is not None and metadata.table_name:
        return metadata.table_name
    return getattr(entity, '__name__', str(entity))


class QueryBuilder:
    """Generative builder for SELECT / COUNT statements over entity metadata.

    Example:
        >>> query = QueryBuilder().select_from(Table1).limit(10)
        >>> query.render_select()
        'select ta1.id, ta1.created_date, ta1.address, ta1.name from table_1 ta1  limit 10'
    """

    def __init__(self, state: Optional[QueryState] = None):
        self._state = state if state is not None else QueryState()

    @property
    def state(self) -> QueryState:
        """The immutable configuration of this builder."""
        return self._state

    def _evolve(self, **changes) -> 'QueryBuilder':
        return QueryBuilder(replace(self._state, **changes))

    # ------------------------------------------------------------------
    # Table bookkeeping
    # ------------------------------------------------------------------

    def _locate(self, entity: Any) -> Optional[TableDescriptor]:
        """Find the main table or first join registered for ``entity``."""
        main = self._state.main_table
        if main is None:
            return None
        if main.table_type is entity:
            return main
        for join in self._state.joins:
            if join.table_type is entity:
                return join
        return None

    def _require_main(self, action: str) -> TableDescriptor:
        if self._state.main_table is None:
            raise QueryBuilderError(f"select_from must be called before {action}")
        return self._state.main_table

    def _require_column(self, entity: Any, field_name: str) -> TableDescriptor:
        """Validate ``field_name`` on ``entity``, then locate the table in the query.

        Raises:
            QueryBuilderError: If the column is unknown, or the table has not
                been added with select_from / inner_join
        """
        if not column_exists(entity, field_name):
            raise QueryBuilderError(f"{field_name} does not exist on table {_table_label(entity)}")

        table = self._locate(entity)
        if table is None:
            raise QueryBuilderError(
                f"Table {_table_label(entity)} has not been defined as a select or join table"
            )
        return table

    def select_from(self, entity: Any, *columns: str) -> 'QueryBuilder':
        """
        Set the main table of the query.

        Without ``columns`` every mapped column of ``entity`` is selected;
        otherwise only the named columns, in the given order.

        Args:
            entity: Class registered with a table name
            *columns: Optional column names to restrict the select list

        Returns:
            New builder

        Raises:
            MetadataError: If ``entity`` has no table metadata
            QueryBuilderError: If the main table is already set or a column
                does not exist on ``entity``
        """
        if self._state.main_table is not None:
            raise QueryBuilderError(
                f"Main table already set to {self._state.main_table.table_name}"
            )

        metadata = table_metadata(entity)
        main = TableDescriptor(
            table_name=metadata.table_name,
            table_type=entity,
            alias=allocate_alias(metadata.table_name, 0)
        )

        if columns:
            fields = []
            for column_name in columns:
                if not column_exists(entity, column_name):
                    raise QueryBuilderError(f"{column_name} does not exist on table {metadata.table_name}")
                col = metadata.find_column(strip_cast(column_name))
                fields.append(FieldDescriptor(column_name, col.field_name, main.alias))
        else:
            fields = [FieldDescriptor(c.column_name, c.field_name, main.alias) for c in metadata.columns]

        logger.debug(f"Main table {main.table_name} aliased {main.alias} ({len(fields)} fields)")
        return self._evolve(main_table=main, fields=tuple(fields))

    def inner_join(
        self,
        entity: Any,
        local_column: str,
        remote_column: Optional[str] = None,
        reference: Any = None
    ) -> 'QueryBuilder':
        """
        Add an inner join.

        Renders ``join <table> <alias> on <alias>.<local_column> = <ref>.<remote_column>``.

        Args:
            entity: Class registered with a table name, the table to join
            local_column: Column on ``entity`` (usually a foreign key)
            remote_column: Column on the referenced table; defaults to the
                configured default join column (``id``)
            reference: Table already in the query to join to; defaults to
                the main table

        Returns:
            New builder

        Raises:
            QueryBuilderError: If ``reference`` has not been added to the query
            MetadataError: If ``entity`` has no table metadata
        """
        main = self._require_main('inner_join')
        remote_column = remote_column or config.default_join_column

        if reference is None:
            target = main
        else:
            target = self._locate(reference)
            if target is None:
                raise QueryBuilderError(f"{_table_label(reference)} has not been added to query.")

        metadata = table_metadata(entity)
        alias = allocate_alias(metadata.table_name, len(self._state.joins) + 1)
        join = JoinDescriptor(
            table_name=metadata.table_name,
            table_type=entity,
            alias=alias,
            join_predicate=f"{alias}.{local_column} = {target.alias}.{remote_column}"
        )

        logger.debug(f"Joined {join.table_name} as {alias} on {join.join_predicate}")
        return self._evolve(joins=self._state.joins + (join,))

    def return_as(self, entity: Any) -> 'QueryBuilder':
        """
        Shape the select list after ``entity``.

        Each column-mapped field of ``entity`` is read from:
        1. the table named by its source hint, if that table is in the query;
        2. otherwise the main table, if it provides the column;
        3. otherwise the first joined table providing it.

        Args:
            entity: Projection (or table) class with column metadata

        Returns:
            New builder

        Raises:
            MetadataError: If ``entity`` carries no column metadata
            QueryBuilderError: If a field's column is not provided by any table
        """
        main = self._require_main('return_as')
        metadata = describe(entity)

        pool = list(self._state.fields)
        known = {(f.column_name, f.owner_alias) for f in pool}
        for join in self._state.joins:
            for col in describe(join.table_type).columns:
                if (col.column_name, join.alias) not in known:
                    pool.append(FieldDescriptor(col.column_name, col.field_name, join.alias))
                    known.add((col.column_name, join.alias))

        def find(column_name: str, owner_alias: Optional[str] = None) -> Optional[FieldDescriptor]:
            for f in pool:
                if f.column_name == column_name and (owner_alias is None or f.owner_alias == owner_alias):
                    return f
            return None

        return_fields = []
        for col in metadata.columns:
            detail = None
            if col.source is not None:
                source_table = self._locate(col.source)
                if source_table is not None:
                    detail = find(col.column_name, source_table.alias)
                else:
                    logger.debug(
                        f"Source {_table_label(col.source)} for {col.field_name} is not in the query, "
                        f"falling back to table order"
                    )

            if detail is None:
                detail = find(col.column_name, main.alias) or find(col.column_name)

            if detail is None:
                raise QueryBuilderError(
                    f"{col.column_name} does not exist on any tables defined in this query"
                )

            return_fields.append(FieldDescriptor(col.column_name, col.field_name, detail.owner_alias))

        return self._evolve(fields=tuple(pool), return_fields=tuple(return_fields))

    def distinct_on(self, entity: Any, column_name: str) -> 'QueryBuilder':
        """
        Select distinct rows on ``column_name`` of ``entity``.

        Renders ``select distinct on(<col>) <col>, ...`` and makes
        render_count emit ``count(distinct <col>)``.

        Raises:
            QueryBuilderError: If the column is unknown or the table is not in the query
        """
        table = self._require_column(entity, column_name)
        return self._evolve(distinct_on=f"{table.alias}.{column_name}")

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @staticmethod
    def _condition(table: TableDescriptor, field_name: str, operand: Operand, value: Any) -> str:
        qualified = f"{table.alias}.{field_name}"
        if operand is Operand.IS_NULL:
            return f"{qualified} is null"
        return f"{qualified} {operand.value} {render_literal(value)}"

    def _add_predicate(self, fragment: str) -> 'QueryBuilder':
        return self._evolve(predicates=self._state.predicates + (fragment,))

    def where(
        self,
        entity: Any,
        field_name: str,
        operand: Operand = Operand.EQUALS,
        value: Any = None,
        case: CaseComparison = CaseComparison.NONE
    ) -> 'QueryBuilder':
        """
        Add ``<alias>.<field> <op> '<value>'``.

        Operand.IS_NULL renders ``<alias>.<field> is null`` and ignores
        ``value``. CaseComparison.IGNORE_CASE compares UPPER() of both sides.

        Args:
            entity: Table in the query that owns the column
            field_name: Column name, optionally with a ``::type`` cast
            operand: Comparison operator
            value: Compared value, rendered as a quoted literal
            case: Case handling

        Returns:
            New builder
        """
        table = self._require_column(entity, field_name)

        if operand is not Operand.IS_NULL and case is CaseComparison.IGNORE_CASE:
            fragment = f"UPPER({table.alias}.{field_name}) {operand.value} UPPER({render_literal(value)})"
        else:
            fragment = self._condition(table, field_name, operand, value)
        return self._add_predicate(fragment)

    def where_or(self, entity: Any, field_name: str, operand: Operand, *values: Any) -> 'QueryBuilder':
        """
        Add ``(<cond1> or <cond2> ...)``, one condition per non-None value.

        None values are skipped; when every value is None the fragment is ``()``.
        """
        table = self._require_column(entity, field_name)
        conditions = [self._condition(table, field_name, operand, v) for v in values if v is not None]
        return self._add_predicate(f"({' or '.join(conditions)})")

    def where_not(self, entity: Any, field_name: str, value: Any) -> 'QueryBuilder':
        """Add ``NOT <alias>.<field> = '<value>'``."""
        table = self._require_column(entity, field_name)
        return self._add_predicate(f"NOT {table.alias}.{field_name} = {render_literal(value)}")

    def where_not_in(self, entity: Any, field_name: str, *values: Any) -> 'QueryBuilder':
        """
        Add ``NOT <alias>.<field> IN  ('<v1>','<v2>')``.

        An empty value list renders ``NOT <alias>.<field> IN  ()``.
        """
        table = self._require_column(entity, field_name)
        return self._add_predicate(f"NOT {table.alias}.{field_name} IN  ({render_literal_list(values)})")

    def where_between(self, entity: Any, field_name: str, min_value: Any, max_value: Any) -> 'QueryBuilder':
        """
        Add ``<alias>.<field> between '<min>' and '<max>'``.

        Intended for dates and numbers; the bounds are not validated.
        """
        table = self._require_column(entity, field_name)
        return self._add_predicate(
            f"{table.alias}.{field_name} between {render_literal(min_value)} and {render_literal(max_value)}"
        )

    # ------------------------------------------------------------------
    # Ordering and pagination
    # ------------------------------------------------------------------

    def order_by(self, entity: Any, field_name: str, order: Order = Order.ASCENDING) -> 'QueryBuilder':
        """Order by ``field_name`` of ``entity``; replaces any previous ordering."""
        table = self._require_column(entity, field_name)
        return self._evolve(order_by=f"order by {table.alias}.{field_name} {order.value}")

    def offset(self, offset: Optional[int]) -> 'QueryBuilder':
        """Set OFFSET; None or negative values become 0."""
        return self._evolve(offset=0 if offset is None or offset < 0 else int(offset))

    def limit(self, limit: Optional[int]) -> 'QueryBuilder':
        """Set LIMIT; None removes it."""
        return self._evolve(limit=limit)

    def get_offset(self) -> Optional[int]:
        return self._state.offset

    def get_limit(self) -> Optional[int]:
        return self._state.limit

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_body(self) -> str:
        """Render ``from ... join ... [where ...]`` shared by all statements."""
        main = self._require_main('rendering')
        parts = [f"from {main.table_name} {main.alias}"]
        parts.extend(join.render() for join in self._state.joins)
        body = ' '.join(parts) + ' '

        if self._state.predicates:
            body += ' where ' + ' and '.join(self._state.predicates)
        return body

    def _render_fields(self) -> str:
        fields = self._state.return_fields if self._state.return_fields else self._state.fields
        return ', '.join(f.render() for f in fields)

    def _log(self, kind: str, sql: str) -> str:
        if config.log_sql:
            logger.debug(f"Rendered {kind}: {sql}")
        return sql

    def render_select(self) -> str:
        """
        Render the full select statement.

        Returns:
            ``select <fields> from ... [where ...] [order by ...] [offset N] [limit N]``

        Raises:
            QueryBuilderError: If select_from has not been called
        """
        body = self._render_body()
        distinct = self._state.distinct_on

        if distinct:
            sql = f"select distinct on({distinct}) {distinct}, {self._render_fields()} {body}"
        else:
            sql = f"select {self._render_fields()} {body}"

        if self._state.order_by:
            sql += f" {self._state.order_by}"
        if self._state.offset is not None:
            sql += f" offset {self._state.offset}"
        if self._state.limit is not None:
            sql += f" limit {self._state.limit}"
        return self._log('select', sql)

    def render_count(self) -> str:
        """
        Render a count of the rows the select would return (ignoring pagination).

        Returns:
            ``select count(*) from ...`` or, with distinct_on,
            ``select count(distinct <col>) from ...``
        """
        body = self._render_body()
        distinct = self._state.distinct_on
        if distinct:
            sql = f"select count(distinct {distinct}) {body}"
        else:
            sql = f"select count(*) {body}"
        return self._log('count', sql)

    def render_distinct_count(self, column_name: Optional[str] = None) -> str:
        """
        Render ``select count(distinct(<alias>.<column>)) from ...``.

        The column is read from the main table when it declares it, otherwise
        from the first joined table that does.

        Args:
            column_name: Column to count; defaults to the configured default
                join column (``id``)

        Raises:
            QueryBuilderError: If no table in the query declares the column
        """
        main = self._require_main('rendering')
        column_name = column_name or config.default_join_column

        if column_exists(main.table_type, column_name):
            owner = main
        else:
            owner = next((j for j in self._state.joins if column_exists(j.table_type, column_name)), None)

        if owner is None:
            raise QueryBuilderError(f"{column_name} could not be found on any tables")

        sql = f"select count(distinct({owner.alias}.{column_name})) {self._render_body()}"
        return self._log('distinct count', sql)

    def __str__(self) -> str:
        return self.render_select()
