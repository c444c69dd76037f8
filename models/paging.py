"""
==================================
Paged list response wrapper.
==================================

Carries one page of results together with the offset and limit the query
was built with, so API layers can echo pagination back to callers.

Example:
    >>> response = PagedListResponse.from_query(query, rows)
    >>> response.start_at, response.max_results
    (5, 10)
"""

from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class PagedListResponse:
    """One page of query results.

    Attributes:
        start_at: Offset of the first result (0 when the query set none)
        max_results: Page size (0 when the query set no limit)
        results: The materialized rows
    """

    start_at: int = 0
    max_results: int = 0
    results: List[Any] = field(default_factory=list)

    @classmethod
    def from_query(cls, query, results: List[Any]) -> 'PagedListResponse':
        """Build a response from a QueryBuilder's offset/limit and ``results``."""
        offset = query.get_offset()
        limit = query.get_limit()
        return cls(
            start_at=offset if offset is not None else 0,
            max_results=limit if limit is not None else 0,
            results=list(results) if results is not None else []
        )
