"""
=====================================
Query state descriptors and aliasing.
=====================================

Small value objects describing the tables and fields taking part in a query,
plus the deterministic alias allocator.

Aliasing:
    The main table is ordinal 0 and gets suffix ``1``; the Nth join
    (0-indexed) is ordinal N + 1 and gets suffix ``N + 2``. The prefix is the
    first two characters of the table name, so ``table_1`` joined to
    ``table_2`` renders as ``ta1`` / ``ta2``.
"""

from dataclasses import dataclass

from models.metadata import MetadataError


def allocate_alias(table_name: str, ordinal: int) -> str:
    """
    Derive the alias for a table at ``ordinal`` in the query.

    Args:
        table_name: Physical table name
        ordinal: 0 for the main table, N + 1 for the Nth join

    Returns:
        Alias such as ``ta1``

    Raises:
        MetadataError: If the table name is shorter than two characters
    """
    if table_name is None or len(table_name) < 2:
        raise MetadataError(f"Table name {table_name!r} is too short to derive an alias")
    return f"{table_name[:2]}{ordinal + 1}"


@dataclass(frozen=True)
class TableDescriptor:
    """One physical table in the query."""

    table_name: str
    table_type: type
    alias: str


@dataclass(frozen=True)
class JoinDescriptor(TableDescriptor):
    """A joined table and its rendered ON condition."""

    join_predicate: str = ''

    def render(self) -> str:
        return f"join {self.table_name} {self.alias} on {self.join_predicate}"


@dataclass(frozen=True)
class FieldDescriptor:
    """A column candidate for the select list.

    Attributes:
        column_name: Column name in the database
        output_alias: Name the column is returned under (the entity field name)
        owner_alias: Alias of the table the column is read from
    """

    column_name: str
    output_alias: str
    owner_alias: str

    def render(self) -> str:
        # no alias needed when the output name is the column name
        if self.output_alias.lower() == self.column_name.lower():
            return f"{self.owner_alias}.{self.column_name}"
        return f"{self.owner_alias}.{self.column_name} {self.output_alias}"
