import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import (
    ClientAccount,
    DisputeState,
    InvalidInputError,
    LedgerError,
    ProcessingResult,
    ProcessingStats,
    StoredTransaction,
    Transaction,
    TransactionType,
)


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_transaction_type_from_csv_value(self):
        assert TransactionType("chargeback") == TransactionType.CHARGEBACK


class TestStoredTransaction:
    def test_is_immutable(self):
        stored = StoredTransaction(TransactionType.DEPOSIT, Decimal("3"))
        with pytest.raises(AttributeError):
            stored.amount = Decimal("4")


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_credit_and_debit_move_total(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("10.5"))
        account.debit(Decimal("0.5"))
        assert account.available == Decimal("10.0")
        assert account.total == Decimal("10.0")

    def test_hold_and_release_keep_total(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("10"))
        account.hold(Decimal("4"))
        assert account.available == Decimal("6")
        assert account.held == Decimal("4")
        assert account.total == Decimal("10")

        account.release_hold(Decimal("4"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")
        assert account.total == Decimal("10")

    def test_arithmetic_is_exact(self):
        account = ClientAccount(client_id=1)
        account.credit(Decimal("1E+23"))
        account.credit(Decimal("0.000001"))
        account.debit(Decimal("1E+23"))
        assert account.available == Decimal("0.000001")
        assert account.total == Decimal("0.000001")

    def test_inexact_result_raises_and_leaves_balances(self):
        account = ClientAccount(client_id=1, available=Decimal("1E+70"), total=Decimal("1E+70"))

        with pytest.raises(InvalidInputError, match="digits of precision"):
            account.credit(Decimal("1E-10"))

        assert account.available == Decimal("1E+70")
        assert account.total == Decimal("1E+70")

    def test_lock(self):
        account = ClientAccount(client_id=1)
        account.lock()
        assert account.locked is True


class TestProcessingStats:
    def test_counts(self):
        stats = ProcessingStats()
        stats.record(ProcessingResult.APPLIED)
        stats.record(ProcessingResult.APPLIED)
        stats.record(ProcessingResult.IGNORED)
        assert stats.applied == 2
        assert stats.ignored == 1
        assert stats.processed == 3


class TestEnums:
    def test_enum_values(self):
        assert ProcessingResult.APPLIED.value == "applied"
        assert ProcessingResult.IGNORED.value == "ignored"
        assert DisputeState.DISPUTED.value == "disputed"
        assert DisputeState.RESOLVED.value == "resolved"
        assert DisputeState.CHARGED_BACK.value == "charged_back"

    def test_invalid_input_is_ledger_error(self):
        assert issubclass(InvalidInputError, LedgerError)
