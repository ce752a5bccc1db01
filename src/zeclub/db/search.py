"""Helpers for case-insensitive substring search with ILIKE."""

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(value: str) -> str:
    """ILIKE pattern matching ``value`` anywhere, wildcards in ``value`` taken literally."""
    return f"%{escape_like(value)}%"
