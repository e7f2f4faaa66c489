"""
Display formatting in the dashboard's pt-BR conventions.
"""

from datetime import datetime
from typing import Optional, Union

from menu_admin.core.config import get_settings

NOT_SET = "Not set"


def format_price(value: Optional[float], symbol: Optional[str] = None) -> str:
    """
    Format a price as currency: 1234.5 -> "R$ 1.234,50".

    None is formatted as zero.
    """
    symbol = symbol if symbol is not None else get_settings().currency_symbol
    amount = float(value or 0)
    sign = "-" if amount < 0 else ""
    # 1,234.50 -> 1.234,50
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{symbol} {digits}"


def format_datetime(value: Union[datetime, str, None]) -> str:
    """Format a timestamp as dd/mm/yyyy HH:MM; an empty string when missing."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value.strftime("%d/%m/%Y %H:%M")


def format_optional(value: Optional[float], unit: str) -> str:
    """'8.5 km', '40 minutes', or 'Not set'."""
    if value is None:
        return NOT_SET
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value} {unit}"
