"""Transaction model for the classroom ledger."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class Transaction:
    """Append-only money movement between two accounts.

    Names are snapshotted at creation so the record stays readable after
    either account is deleted.
    """

    transaction_id: str
    sender_id: str
    sender_name: str
    recipient_id: str
    recipient_name: str
    amount: Decimal
    message: str
    timestamp: datetime
    participants: list[str] = field(default_factory=list)

    def involves(self, account_id: str) -> bool:
        return account_id in (self.sender_id, self.recipient_id)
