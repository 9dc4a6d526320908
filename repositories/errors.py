"""
Classifiers for Supabase/PostgREST errors.

Supabase-py raises `postgrest.exceptions.APIError` with the Postgres or
PostgREST error `code` and a `message`. These helpers only look at those two
attributes, so they work on any error object shaped the same way.
"""

from __future__ import annotations

from typing import Any

# Postgres SQLSTATE codes
_UNIQUE_VIOLATION = "23505"
_UNDEFINED_COLUMN = "42703"
_UNDEFINED_FUNCTION = "42883"

# PostgREST codes
_PGRST_FUNCTION_NOT_FOUND = "PGRST202"
_PGRST_COLUMN_NOT_FOUND = "PGRST204"

CONSUME_LEAD_FUNCTION: str = "consume_vendor_lead"

# Columns the atomic procedure relies on that older schemas do not have.
_PROCEDURE_COLUMNS = ("daily_reset_at", "weekly_reset_at")


def _code(error: Any) -> str:
    return str(getattr(error, "code", None) or "").strip().upper()


def _message(error: Any) -> str:
    message = getattr(error, "message", None)
    if message is None:
        message = str(error)
    return str(message or "").lower()


def is_unique_violation(error: Any) -> bool:
    if _code(error) == _UNIQUE_VIOLATION:
        return True
    message = _message(error)
    return "duplicate key" in message or "unique" in message


def is_missing_column(error: Any) -> bool:
    if _code(error) in (_UNDEFINED_COLUMN, _PGRST_COLUMN_NOT_FOUND):
        return True
    message = _message(error)
    return "column" in message and "does not exist" in message


def is_schema_compatibility_error(error: Any) -> bool:
    """True when the atomic consumption procedure cannot run on this schema."""

    message = _message(error)
    if any(column in message for column in _PROCEDURE_COLUMNS):
        return True
    if CONSUME_LEAD_FUNCTION not in message:
        return False
    if "does not exist" in message or "could not find the function" in message:
        return True
    return _code(error) in (_UNDEFINED_FUNCTION, _PGRST_FUNCTION_NOT_FOUND)


def describe_error(error: Any) -> str:
    message = getattr(error, "message", None) or str(error)
    code = _code(error)
    return f"{message} (code {code})" if code else str(message)
