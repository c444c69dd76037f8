"""
=============================================
SQL composition package for the query builder.
=============================================

Turns entity metadata into SELECT / COUNT statements.

The package follows a clear organization:
    - descriptors.py: Table, join and field descriptors, alias allocation
    - literals.py: The single place literal values are rendered
    - query_builder.py: The generative QueryBuilder and its enums

Architecture:
    - query_builder.py imports descriptors.py and literals.py (not vice versa)
    - Rendering is a pure function of an immutable QueryState

Example:
    >>> from sql import Operand, Order, QueryBuilder
    >>>
    >>> query = (
    ...     QueryBuilder()
    ...     .select_from(Table1)
    ...     .inner_join(Table2, 'table_1_id')
    ...     .where(Table2, 'location', Operand.EQUALS, 'Durban')
    ...     .order_by(Table1, 'created_date', Order.DESCENDING)
    ... )
    >>> query.render_select()
    >>> query.render_count()
"""

__version__ = "0.1.0"
__all__ = [
    'QueryBuilder', 'QueryBuilderError', 'QueryState',
    'Operand', 'Order', 'CaseComparison',
]

from .query_builder import (
    CaseComparison,
    Operand,
    Order,
    QueryBuilder,
    QueryBuilderError,
    QueryState,
)
