"""Acting principal supplied by the caller's session layer."""

from dataclasses import dataclass

from econsim.models.account import Account
from econsim.models.enums import Role


@dataclass(frozen=True)
class Principal:
    """Already-authenticated caller of an engine operation."""

    account_id: str
    role: Role

    @classmethod
    def of(cls, account: Account) -> "Principal":
        return cls(account_id=account.account_id, role=account.role)

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT
