"""Builder for the backend's filter expression language.

The backend accepts expressions such as ``slug = "x" && published = true``.
String literals are double-quoted, so every interpolated value must be
escaped with :func:`escape_filter` before it is embedded.
"""

from typing import Union

Value = Union[str, int, bool]

PUBLISHED = "published = true"
MENU_VISIBLE = "menuVisible = true"


def escape_filter(value: str) -> str:
    """Escape *value* for use inside a double-quoted filter literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def literal(value: Value) -> str:
    """Render *value* as a filter literal (booleans and numbers stay bare)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return f'"{escape_filter(value)}"'


def compare(field: str, op: str, value: Value) -> str:
    return f"{field} {op} {literal(value)}"


def eq(field: str, value: Value) -> str:
    return compare(field, "=", value)


def contains(field: str, value: str) -> str:
    return compare(field, "~", value)


def gt(field: str, value: Value) -> str:
    return compare(field, ">", value)


def lt(field: str, value: Value) -> str:
    return compare(field, "<", value)


def all_of(*clauses: str) -> str:
    return " && ".join(clause for clause in clauses if clause)


def any_of(*clauses: str) -> str:
    joined = " || ".join(clause for clause in clauses if clause)
    return f"({joined})" if joined else ""
