"""Account ledger: accounts, balances and money movement."""

import logging
from decimal import Decimal
from typing import Any, Iterable

from econsim.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidRoleError,
    NotFoundError,
    SelfTransferError,
    StoreError,
    ValidationError,
)
from econsim.ids import new_id
from econsim.models import Account, GrantResult, Principal, Role, Transaction
from econsim.security import hash_password
from econsim.serialization import to_dict
from econsim.services.base import BaseService, public_account, require_role
from econsim.store.classroom import UnitOfWork
from econsim.validation import (
    parse_amount,
    reject_unknown_fields,
    validate_account_number,
    validate_name,
    validate_password,
    validate_username,
)

logger = logging.getLogger(__name__)

DEFAULT_GRANT_MESSAGE = "Payment from the bank"
EDITABLE_ACCOUNT_FIELDS = {"display_name", "username", "account_number"}


def _limit(items: list, limit: int) -> list:
    if limit < 0:
        raise ValidationError("Limit cannot be negative")
    return items[:limit] if limit else items


class AccountLedger(BaseService):
    """Accounts and the append-only transaction log.

    Every mutating call runs as a single unit of work, so balance updates
    and the matching transaction record are committed together or not at
    all.
    """

    source = "ledger"

    # Accounts
    def create_account(
        self,
        principal: Principal,
        *,
        display_name: str,
        username: str,
        password: str,
        account_number: str | None = None,
    ) -> Account:
        """Create a student account funded with the starting balance.

        Parameters
        ----------
        principal : Principal
            Acting teacher.
        display_name, username, password : str
            Validated and normalized before anything is stored.
        account_number : str, optional
            Fixed-width digit string. The next free number is used when omitted.

        Returns
        -------
        Account
            The stored account.
        """
        require_role(principal, Role.TEACHER, "create accounts")
        return self.open_account(
            display_name=display_name,
            username=username,
            password=password,
            account_number=account_number,
            role=Role.STUDENT,
        )

    def open_account(
        self,
        *,
        display_name: str,
        username: str,
        password: str,
        account_number: str | None,
        role: Role,
        balance: Decimal | None = None,
    ) -> Account:
        """Store a new account without a role check (used for bootstrap)."""
        width = self.config.ledger.account_number_length
        display_name = validate_name(display_name)
        username = validate_username(username)
        validate_password(password)
        if account_number is not None:
            account_number = validate_account_number(account_number, width)
        password_hash = hash_password(password, self.config.ledger.password_iterations)

        with self._transaction() as uow:
            if uow.account_by_username(username) is not None:
                raise ConflictError(f"Username {username!r} is already taken")
            if account_number is None:
                account_number = self._next_number(uow)
            elif uow.account_by_number(account_number) is not None:
                raise ConflictError(f"Account number {account_number} is already in use")

            account = Account(
                account_id=new_id("acct_"),
                username=username,
                display_name=display_name,
                role=role,
                account_number=account_number,
                balance=uow.settings.starting_balance if balance is None else balance,
                password_hash=password_hash,
                created_at=self.now(),
            )
            uow.put_account(account)
            self._emit(uow, "account.created", account.account_id, public_account(account))

        logger.info(
            "Created %s account %s (%s) with balance %s",
            role.value,
            account.account_number,
            account.username,
            account.balance,
        )
        return account

    def delete_account(self, principal: Principal, account_id: str) -> None:
        """Delete a student account. Its transactions stay in the log."""
        require_role(principal, Role.TEACHER, "delete accounts")
        with self._transaction() as uow:
            account = uow.require_account(account_id)
            if account.role != Role.STUDENT:
                raise InvalidRoleError("Only student accounts can be deleted")
            uow.remove_account(account_id)
            self._emit(uow, "account.deleted", account_id, {"username": account.username})
        logger.info("Deleted account %s (%s)", account.account_number, account.username)

    def update_account(
        self, principal: Principal, account_id: str, fields: dict[str, Any]
    ) -> Account:
        """Edit display name, username or account number of an account."""
        require_role(principal, Role.TEACHER, "edit accounts")
        reject_unknown_fields(fields, EDITABLE_ACCOUNT_FIELDS, "an account")

        changes: dict[str, str] = {}
        if "display_name" in fields:
            changes["display_name"] = validate_name(fields["display_name"])
        if "username" in fields:
            changes["username"] = validate_username(fields["username"])
        if "account_number" in fields:
            changes["account_number"] = validate_account_number(
                fields["account_number"], self.config.ledger.account_number_length
            )

        with self._transaction() as uow:
            account = uow.require_account(account_id)
            username = changes.get("username")
            if username is not None:
                other = uow.account_by_username(username)
                if other is not None and other.account_id != account_id:
                    raise ConflictError(f"Username {username!r} is already taken")
            number = changes.get("account_number")
            if number is not None:
                other = uow.account_by_number(number)
                if other is not None and other.account_id != account_id:
                    raise ConflictError(f"Account number {number} is already in use")

            for name, value in changes.items():
                setattr(account, name, value)
            account.updated_at = self.now()
            uow.put_account(account)
            self._emit(uow, "account.updated", account_id, public_account(account))
        return account

    def get_account(self, account_id: str) -> Account:
        with self._snapshot() as view:
            return view.require_account(account_id)

    def find_by_account_number(self, account_number: str) -> Account | None:
        with self._snapshot() as view:
            return view.account_by_number(str(account_number).strip())

    def list_students(self, principal: Principal) -> list[Account]:
        require_role(principal, Role.TEACHER, "list students")
        with self._snapshot() as view:
            students = [a for a in view.accounts.values() if a.role == Role.STUDENT]
        return sorted(students, key=lambda a: a.display_name.lower())

    def next_account_number(self) -> str:
        with self._snapshot() as view:
            return self._next_number(view)

    def _next_number(self, uow: UnitOfWork) -> str:
        ledger = self.config.ledger
        numbers = [
            int(a.account_number) for a in uow.accounts.values() if a.account_number.isdigit()
        ]
        if not numbers:
            return ledger.first_student_account_number
        candidate = max(numbers) + 1
        if candidate >= 10**ledger.account_number_length:
            raise ConflictError("No free account numbers left")
        return str(candidate).zfill(ledger.account_number_length)

    # Money movement
    def transfer(
        self,
        principal: Principal,
        recipient_account_number: str,
        amount: Any,
        message: str = "",
    ) -> Transaction:
        """Move money from the principal's account to another account.

        The teacher's account is the bank and is never debited. Students
        cannot send more than their stored balance.

        Raises
        ------
        AmountFormatError
            ``amount`` is not positive or has more than two decimals.
        NotFoundError
            Sender or recipient account does not exist.
        SelfTransferError
            Recipient is the sender.
        InsufficientFundsError
            A student sender has less than ``amount``.
        """
        amount = parse_amount(amount, maximum=self.config.ledger.max_amount)
        if message is None:
            message = ""
        if not isinstance(message, str):
            raise ValidationError("Message must be text")
        message = message.strip()
        number = str(recipient_account_number).strip()

        with self._transaction() as uow:
            sender = uow.require_account(principal.account_id)
            recipient = uow.account_by_number(number)
            if recipient is None:
                raise NotFoundError(f"No account with number {number}")
            if recipient.account_id == sender.account_id:
                raise SelfTransferError("Cannot transfer money to yourself")
            if not sender.is_bank and sender.balance < amount:
                logger.debug(
                    "Rejected transfer of %s from %s: balance %s",
                    amount,
                    sender.account_number,
                    sender.balance,
                )
                raise InsufficientFundsError(
                    f"Insufficient funds: balance {sender.balance}, amount {amount}"
                )
            transaction = self._post(uow, sender, recipient, amount, message)

        logger.info(
            "Transfer %s %s from %s to %s",
            transaction.transaction_id,
            amount,
            sender.account_number,
            recipient.account_number,
            extra={
                "transaction_id": transaction.transaction_id,
                "account_id": sender.account_id,
                "amount": amount,
            },
        )
        return transaction

    def grant(
        self,
        principal: Principal,
        recipient_ids: str | Iterable[str],
        amount: Any,
        message: str = DEFAULT_GRANT_MESSAGE,
    ) -> GrantResult:
        """Pay ``amount`` from the bank to each recipient.

        Each recipient is paid in its own commit. A recipient that cannot be
        paid is reported in ``GrantResult.skipped``; the others keep their
        payment.
        """
        require_role(principal, Role.TEACHER, "grant money")
        amount = parse_amount(amount, maximum=self.config.ledger.max_amount)
        ids = [recipient_ids] if isinstance(recipient_ids, str) else list(recipient_ids)
        if not ids:
            raise ValidationError("No recipients selected")
        message = (message or DEFAULT_GRANT_MESSAGE).strip()

        result = GrantResult()
        for recipient_id in ids:
            try:
                with self._transaction() as uow:
                    part = self.grant_within(uow, principal, [recipient_id], amount, message)
            except (ConflictError, StoreError) as exc:
                logger.error("Grant to %s failed: %s", recipient_id, exc)
                result.skipped.append(recipient_id)
                continue
            result.succeeded.extend(part.succeeded)
            result.skipped.extend(part.skipped)

        logger.info(
            "Granted %s to %d recipients (%d skipped)",
            amount,
            len(result.succeeded),
            len(result.skipped),
        )
        return result

    def grant_within(
        self,
        uow: UnitOfWork,
        principal: Principal,
        recipient_ids: list[str],
        amount: Decimal,
        message: str,
    ) -> GrantResult:
        """Stage bank payments inside an existing unit of work."""
        bank = uow.require_account(principal.account_id)
        if not bank.is_bank:
            raise InvalidRoleError("Only the bank account can grant money")

        result = GrantResult()
        for recipient_id in recipient_ids:
            recipient = uow.accounts.get(recipient_id)
            if recipient is None or recipient_id == bank.account_id:
                logger.warning("Skipping grant to unknown recipient %s", recipient_id)
                result.skipped.append(recipient_id)
                continue
            result.succeeded.append(self._post(uow, bank, recipient, amount, message))
        return result

    def _post(
        self,
        uow: UnitOfWork,
        sender: Account,
        recipient: Account,
        amount: Decimal,
        message: str,
    ) -> Transaction:
        ceiling = self.config.ledger.max_balance
        if recipient.balance + amount > ceiling:
            raise ConflictError(
                f"Balance of account {recipient.account_number} would exceed {ceiling}"
            )
        now = self.now()
        if not sender.is_bank:
            sender.balance -= amount
            sender.updated_at = now
            uow.put_account(sender)
        recipient.balance += amount
        recipient.updated_at = now
        uow.put_account(recipient)

        transaction = Transaction(
            transaction_id=new_id("tx_"),
            sender_id=sender.account_id,
            sender_name=sender.display_name,
            recipient_id=recipient.account_id,
            recipient_name=recipient.display_name,
            amount=amount,
            message=message,
            timestamp=now,
            participants=[sender.account_id, recipient.account_id],
        )
        uow.append_transaction(transaction)

        self._emit(uow, "transaction.created", transaction.transaction_id, to_dict(transaction))
        changed = [recipient] if sender.is_bank else [sender, recipient]
        for account in changed:
            self._emit(
                uow,
                "balance.updated",
                account.account_id,
                {"balance": str(account.balance)},
            )
        return transaction

    # History and statistics
    def get_history(self, account_id: str, limit: int = 0) -> list[Transaction]:
        """Transactions sent or received by the account, newest first."""
        with self._snapshot() as view:
            history = view.account_transactions(account_id)
        return _limit(history, limit)

    def list_transactions(self, principal: Principal, limit: int = 0) -> list[Transaction]:
        require_role(principal, Role.TEACHER, "view all transactions")
        with self._snapshot() as view:
            indexed = list(enumerate(view.transactions))
        indexed.sort(key=lambda item: (item[1].timestamp, item[0]), reverse=True)
        return _limit([tx for _, tx in indexed], limit)

    def transaction_stats(self, account_id: str) -> dict[str, Any]:
        """Money in, money out and count for one account."""
        with self._snapshot() as view:
            account = view.accounts.get(account_id)
            history = view.account_transactions(account_id)

        total_in = sum((tx.amount for tx in history if tx.recipient_id == account_id), Decimal("0"))
        total_out = sum((tx.amount for tx in history if tx.sender_id == account_id), Decimal("0"))
        return {
            "total_in": total_in,
            "total_out": total_out,
            "balance": account.balance if account else Decimal("0"),
            "transaction_count": len(history),
        }

    def student_statistics(self, principal: Principal) -> dict[str, Any]:
        require_role(principal, Role.TEACHER, "view class statistics")
        with self._snapshot() as view:
            balances = [a.balance for a in view.accounts.values() if a.role == Role.STUDENT]

        if not balances:
            zero = Decimal("0")
            return {
                "total_students": 0,
                "total_balance": zero,
                "average_balance": zero,
                "highest_balance": zero,
                "lowest_balance": zero,
            }
        total = sum(balances, Decimal("0"))
        return {
            "total_students": len(balances),
            "total_balance": total,
            "average_balance": (total / len(balances)).quantize(Decimal("0.01")),
            "highest_balance": max(balances),
            "lowest_balance": min(balances),
        }
