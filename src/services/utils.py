"""Helpers shared by the service modules."""


def escape_like(value: str) -> str:
    r"""
    Escape LIKE/ILIKE wildcards so user input matches literally.

    `%`, `_` and the escape character `\` are prefixed with `\`; queries
    must pass `escape="\\"` so SQLite and PostgreSQL agree on the escape.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(value: str) -> str:
    """Build a `%...%` substring pattern from raw user input."""
    return f"%{escape_like(value)}%"
