"""Tests for the classroom scenario."""

from decimal import Decimal

from econsim.models import Principal, Role
from econsim.scenarios import DEFAULT_TEACHER, ClassroomScenario


class TestClassroomScenario:
    """Tests for ClassroomScenario."""

    def test_run(self, engine, seed: int) -> None:
        scenario = ClassroomScenario(
            engine, num_students=8, num_jobs=4, num_transfers=6, seed=seed
        )

        summary = scenario.run()

        assert summary["students"] == 8
        assert summary["jobs"] == 4
        assert 8 <= summary["applications"] <= 16
        assert summary["accepted"] <= 4
        assert summary["salaries_paid"] == summary["accepted"]
        assert summary["salaries_failed"] == 0
        assert summary["transfers"] + summary["transfers_declined"] == 6
        assert summary["total_accounts"] == 9
        assert summary["total_transactions"] == summary["salaries_paid"] + summary["transfers"]

    def test_bank_is_default_teacher(self, engine, seed: int) -> None:
        ClassroomScenario(engine, num_students=2, num_jobs=1, seed=seed).run()

        bank = engine.accounts.find_by_account_number("100")
        assert bank.role == Role.TEACHER
        assert bank.username == DEFAULT_TEACHER["username"]

    def test_money_is_conserved_between_students(self, engine, seed: int) -> None:
        """Student balances only grow by the salaries paid from the bank."""
        summary = ClassroomScenario(
            engine, num_students=5, num_jobs=3, num_transfers=10, seed=seed
        ).run()
        teacher = Principal.of(engine.accounts.find_by_account_number("100"))

        stats = engine.accounts.student_statistics(teacher)
        salaries = sum(
            (
                tx.amount
                for tx in engine.accounts.list_transactions(teacher)
                if tx.sender_id == teacher.account_id
            ),
            Decimal("0"),
        )

        assert summary["students"] == 5
        assert stats["total_balance"] == Decimal("5000") + salaries

    def test_reproducibility(self, make_engine, seed: int) -> None:
        from econsim.store import MemoryStore

        first = ClassroomScenario(make_engine(MemoryStore()), seed=seed).run()
        second = ClassroomScenario(make_engine(MemoryStore()), seed=seed).run()

        assert first == second

    def test_no_jobs(self, engine, seed: int) -> None:
        summary = ClassroomScenario(engine, num_students=3, num_jobs=0, seed=seed).run()

        assert summary["applications"] == 0
        assert summary["accepted"] == 0
        assert summary["salaries_paid"] == 0
