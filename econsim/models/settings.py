"""Tenant-wide classroom settings."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Settings:
    """Classroom configuration owned by the teacher."""

    class_name: str
    currency_name: str
    currency_symbol: str
    starting_balance: Decimal
    enable_businesses: bool = False
    updated_at: datetime | None = None
