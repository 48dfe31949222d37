"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce numbers coming from the store into Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Decimal) -> Decimal:
    """Round an amount to cents (half up)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def first_day_of_month(now: datetime) -> datetime:
    """Start of the calendar month containing ``now`` (keeps tzinfo)."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def format_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """Format API response."""
    return {
        "message": message,
        "data": data
    }


def format_error(message: str, code: str = "GENERIC_ERROR", details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message, "code": code}
    if details:
        response["details"] = details
    return response
