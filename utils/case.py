"""
Column <-> API key mapping for loan application rows.
Only top-level keys are rewritten; nested JSON (loanSpecifics, majorTenants)
is returned exactly as it was stored.
"""
from typing import Any

from schemas.application import APPLICATION_FIELD_KEYS


def row_to_camel(row: Any) -> dict[str, Any]:
    """Read every borrower-editable column off an ORM row into API keys."""
    return {key: getattr(row, column) for column, key in APPLICATION_FIELD_KEYS.items()}


def isoformat_or_none(value: Any) -> str | None:
    return value.isoformat() if value else None


def columns_to_camel(columns: dict[str, Any]) -> dict[str, Any]:
    """Column-keyed values (as produced by a validated request) -> API keys."""
    return {APPLICATION_FIELD_KEYS[c]: v for c, v in columns.items() if c in APPLICATION_FIELD_KEYS}
