"""Identifier and literal sanitizing for generated SQL text.

Catalog and schema names are validated against a strict character set and
then quoted. Literal values such as paths and credentials may contain any
character, so they are escaped instead of validated.
"""

from __future__ import annotations

import re

from dbextract.core.errors import ConfigurationError

_SAFE_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")


def is_safe_identifier(value: str | None) -> bool:
    """Return True if value only holds letters, digits and underscores."""
    return bool(value) and _SAFE_IDENTIFIER.fullmatch(value) is not None


def validate_identifier(value: str | None, field: str) -> str:
    """
    Return value unchanged if it is a safe identifier.

    Args:
        value: Identifier to check (catalog or schema name).
        field: Connection field name, used in the error message.

    Raises:
        ConfigurationError: If value is empty or contains anything besides
            letters, digits and underscores.
    """
    if not is_safe_identifier(value):
        raise ConfigurationError(
            f"Invalid {field} '{value}': only letters, digits and underscores are allowed."
        )
    return value


def quote_identifier(value: str) -> str:
    """Wrap an identifier in double quotes, doubling embedded quotes."""
    return '"' + value.replace('"', '""') + '"'


def escape_literal(value: str) -> str:
    """Wrap a literal in single quotes, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"
