"""Translation of data store failures into client-facing messages.

Drivers only report constraint violations as text, so the offending field
names are pattern-matched out of the error message. PostgreSQL (asyncpg),
SQLite and the ``Unique constraint failed on the fields`` wording are
recognized; anything else becomes a generic message.
"""

import re
from typing import Final

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from crudkit.core.exceptions import GENERIC_STORE_ERROR_MESSAGE, ConstraintError

UNIQUE_VIOLATION_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    # PostgreSQL: DETAIL:  Key (email)=(a@b.c) already exists.
    re.compile(r"Key \((?P<fields>[^)]+)\)=\(.*?\) already exists"),
    # SQLite: UNIQUE constraint failed: widgets.name, widgets.sku
    re.compile(r"UNIQUE constraint failed: (?P<fields>[\w.]+(?:, [\w.]+)*)"),
    re.compile(r"Unique constraint failed on the fields: \((?P<fields>[^)]+)\)"),
)

MISSING_ARGUMENT_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    # PostgreSQL: null value in column "name" of relation "widgets" violates ...
    re.compile(r'null value in column "(?P<field>[^"]+)"'),
    # SQLite: NOT NULL constraint failed: widgets.name
    re.compile(r"NOT NULL constraint failed: (?P<field>[\w.]+)"),
    re.compile(r"Argument `(?P<field>[^`]+)` is missing"),
)


def _strip_field(raw: str) -> str:
    """Drop quoting and any ``table.`` prefix from a reported field name."""
    return raw.strip().strip("`\"'").rsplit(".", 1)[-1]


def _error_text(exc: Exception) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def extract_unique_fields(message: str) -> list[str] | None:
    """Return the fields named by a uniqueness violation, or None."""
    for pattern in UNIQUE_VIOLATION_PATTERNS:
        if match := pattern.search(message):
            return [_strip_field(field) for field in match.group("fields").split(",")]
    return None


def extract_missing_field(message: str) -> str | None:
    """Return the field named by a NOT NULL / missing argument error, or None."""
    for pattern in MISSING_ARGUMENT_PATTERNS:
        if match := pattern.search(message):
            return _strip_field(match.group("field"))
    return None


def translate_store_error(exc: SQLAlchemyError) -> ConstraintError:
    """Turn a store failure into a ConstraintError with a targeted message.

    Args:
        exc: The exception raised by the session.

    Returns:
        ConstraintError: ``"<fields> already taken"``, ``"<field> is missing"``
            or the generic message.
    """
    message = _error_text(exc)

    if (fields := extract_unique_fields(message)) is not None:
        return ConstraintError(
            [f"{', '.join(fields)} already taken"],
            context={"fields": fields},
            cause=exc,
        )

    if (field := extract_missing_field(message)) is not None:
        return ConstraintError(
            [f"{field} is missing"], context={"fields": [field]}, cause=exc
        )

    return ConstraintError([GENERIC_STORE_ERROR_MESSAGE], cause=exc)
