"""
Literal rendering for predicate values.

Every value interpolated into a WHERE fragment goes through render_literal.
Values are quoted but NOT escaped or parameterized; switching to bound
parameters means replacing this module only.
"""

from typing import Any, Iterable


def render_literal(value: Any) -> str:
    """Render ``value`` as a single-quoted SQL literal, unescaped.

    None renders as the empty string literal ``''``.
    """
    if value is None:
        return "''"
    return f"'{value}'"


def render_literal_list(values: Iterable[Any]) -> str:
    """Render values as a comma separated literal list (no spaces)."""
    return ",".join(render_literal(v) for v in values)
