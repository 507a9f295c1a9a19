"""Small helpers for building parameterised SQL."""

from collections.abc import Sequence

LIKE_ESCAPE = "\\"


def casefold(value: object) -> object:
    """Unicode case folding for SQL. Registered on every connection as ``casefold()``.

    SQLite's own LOWER() and LIKE only fold ASCII. Non-text values (NULL from
    an outer join) pass through unchanged.
    """
    return value.casefold() if isinstance(value, str) else value


def placeholders(values: Sequence) -> str:
    """'?, ?, ?' for an IN (...) clause. Callers must not pass an empty sequence."""
    return ", ".join("?" for _ in values)


def like_pattern(keyword: str) -> str:
    """Case-folded substring pattern for a keyword, escaping %, _ and the escape char.

    Use with ``casefold(column) LIKE ? ESCAPE '\\'``.
    """
    escaped = (
        keyword.casefold()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def folded_like(column: str) -> str:
    """WHERE fragment matching ``column`` against a ``like_pattern`` parameter."""
    return f"casefold({column}) LIKE ? ESCAPE '{LIKE_ESCAPE}'"
