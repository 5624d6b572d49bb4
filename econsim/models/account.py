"""Account model for the classroom ledger."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from econsim.models.enums import Role


@dataclass
class Account:
    """Ledger account held by the teacher or a student.

    A teacher account acts as the bank: it is never debited when it sends
    money and is not checked against the balance floor.
    """

    account_id: str
    username: str
    display_name: str
    role: Role
    account_number: str  # Fixed-width digit string
    balance: Decimal
    password_hash: str
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def is_bank(self) -> bool:
        return self.role == Role.TEACHER
