"""
===========================================================
Entity metadata declarations for the query builder.
===========================================================

Entities are plain dataclasses that carry their table and column mapping as
metadata. The mapping is read once, when the class is declared, and kept in a
central registry so the builder never scans classes while composing a query.

Declarations:
    table: Class decorator naming the physical table of an entity
    projection: Class decorator for return shapes (no table of their own)
    column: Field specifier mapping a dataclass field to a column

SQLAlchemy declarative models are accepted as well: their mapper is inspected
on first use and the result cached in the same registry. A column's
``info={'source': OtherModel}`` plays the role of the source-table hint.

Example:
    >>> from models.metadata import column, projection, table
    >>>
    >>> @table("table_1")
    ... class Table1:
    ...     id: int = column("id", primary_key=True)
    ...     created_date: datetime = column("created_date")
    >>>
    >>> @projection
    ... class Summary:
    ...     id: int = column("id")
    ...     created_date: datetime = column("created_date", source=Table1)
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import inspect as sa_inspect

logger = logging.getLogger(__name__)

COLUMN_KEY = 'query_builder.column'


class MetadataError(ValueError):
    """Exception raised when a type does not carry the metadata a query needs."""
    pass


@dataclass(frozen=True)
class ColumnMetadata:
    """Mapping of one entity field to one table column.

    Attributes:
        field_name: Attribute name on the entity
        column_name: Column name in the database
        primary_key: True if the column is (part of) the primary key
        source: Entity whose table should feed this field when several
            tables in a query share the column name
    """

    field_name: str
    column_name: str
    primary_key: bool = False
    source: Optional[type] = None


@dataclass(frozen=True)
class EntityMetadata:
    """Resolved metadata for one entity type.

    Attributes:
        entity: The described class
        table_name: Physical table name, or None for projection types
        columns: Column-mapped fields in declaration order
    """

    entity: type
    table_name: Optional[str]
    columns: Tuple[ColumnMetadata, ...]

    @property
    def primary_keys(self) -> Tuple[ColumnMetadata, ...]:
        """Columns marked as primary key."""
        return tuple(c for c in self.columns if c.primary_key)

    def find_column(self, column_name: str) -> Optional[ColumnMetadata]:
        """Return the column whose name matches exactly, if any."""
        for col in self.columns:
            if col.column_name == column_name:
                return col
        return None


_registry: Dict[type, EntityMetadata] = {}


def column(
    name: str,
    primary_key: bool = False,
    source: Optional[type] = None,
    default: Any = None,
    **kwargs
) -> Any:
    """Declare a dataclass field mapped to a table column.

    Args:
        name: Column name in the database
        primary_key: Mark the column as primary key
        source: Source-table hint for return shapes
        default: Field default (None, so every mapped field is optional);
            ignored when a ``default_factory`` is given
        **kwargs: Passed through to dataclasses.field

    Returns:
        A dataclasses.Field carrying the column mapping
    """
    info = {'name': name, 'primary_key': primary_key, 'source': source}
    if 'default_factory' not in kwargs:
        kwargs['default'] = default
    return dataclasses.field(metadata={COLUMN_KEY: info}, **kwargs)


def _columns_of(cls: type) -> Tuple[ColumnMetadata, ...]:
    columns = []
    for f in dataclasses.fields(cls):
        info = f.metadata.get(COLUMN_KEY)
        if info is None:
            continue
        columns.append(ColumnMetadata(
            field_name=f.name,
            column_name=info['name'],
            primary_key=info['primary_key'],
            source=info['source']
        ))
    return tuple(columns)


def _register(cls: type, table_name: Optional[str]) -> type:
    if not dataclasses.is_dataclass(cls):
        cls = dataclass(cls)

    columns = _columns_of(cls)
    _registry[cls] = EntityMetadata(entity=cls, table_name=table_name, columns=columns)
    logger.debug(f"Registered {cls.__name__} -> {table_name or '<projection>'} ({len(columns)} columns)")
    return cls


def table(name: str):
    """Class decorator registering an entity mapped to table ``name``.

    Plain classes are turned into dataclasses first.
    """
    if not name:
        raise MetadataError("Table name must not be empty")

    def decorator(cls: type) -> type:
        return _register(cls, name)

    return decorator


def projection(cls: type) -> type:
    """Class decorator registering a return shape with no table of its own."""
    return _register(cls, None)


def _from_declarative(entity: type) -> EntityMetadata:
    mapper = sa_inspect(entity)
    columns = []
    for attr in mapper.column_attrs:
        col = attr.columns[0]
        columns.append(ColumnMetadata(
            field_name=attr.key,
            column_name=col.name,
            primary_key=bool(col.primary_key),
            source=col.info.get('source')
        ))
    return EntityMetadata(entity=entity, table_name=entity.__table__.name, columns=tuple(columns))


def _from_ancestor(entity: type) -> Optional[EntityMetadata]:
    """Inherit the table of the nearest registered base class.

    Columns are re-read from the subclass so fields it adds are mapped too.
    """
    if not dataclasses.is_dataclass(entity):
        return None
    for base in entity.__mro__[1:]:
        inherited = _registry.get(base)
        if inherited is not None:
            return EntityMetadata(entity=entity, table_name=inherited.table_name, columns=_columns_of(entity))
    return None


def lookup(entity: Any) -> Optional[EntityMetadata]:
    """Return the metadata registered for ``entity``, or None.

    SQLAlchemy declarative models are described and cached on first lookup.
    Subclasses of a registered entity inherit its table (or projection) and
    are cached the same way.
    """
    if not isinstance(entity, type):
        return None

    metadata = _registry.get(entity)
    if metadata is not None:
        return metadata

    if getattr(entity, '__table__', None) is not None:
        metadata = _from_declarative(entity)
    else:
        metadata = _from_ancestor(entity)

    if metadata is not None:
        _registry[entity] = metadata
        logger.debug(f"Registered {entity.__name__} -> {metadata.table_name or '<projection>'} on first lookup")
    return metadata


def describe(entity: Any) -> EntityMetadata:
    """Return the metadata of ``entity``.

    Raises:
        MetadataError: If the type carries no column or table metadata
    """
    metadata = lookup(entity)
    if metadata is None:
        raise MetadataError(f"{entity} does not declare any table or column metadata")
    return metadata


def table_metadata(entity: Any) -> EntityMetadata:
    """Return the metadata of ``entity``, requiring a table name.

    Raises:
        MetadataError: If the type is not mapped to a table
    """
    metadata = lookup(entity)
    if metadata is None or not metadata.table_name:
        raise MetadataError(f"{entity} does not have table metadata")
    return metadata


def strip_cast(field_name: str) -> str:
    """Drop a trailing ``::type`` cast, e.g. ``amount::numeric`` -> ``amount``."""
    cast_index = field_name.find('::')
    if cast_index > 0:
        return field_name[:cast_index]
    return field_name


def column_exists(entity: Any, field_name: str) -> bool:
    """Check that ``field_name`` (cast suffix allowed) is a column of ``entity``.

    Types without metadata have no columns.
    """
    metadata = lookup(entity)
    if metadata is None or not field_name:
        return False
    return metadata.find_column(strip_cast(field_name)) is not None
