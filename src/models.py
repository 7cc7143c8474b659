from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow
from enum import Enum
from typing import Optional


ZERO = Decimal("0")

# Balances are exact: any result that would need rounding raises Inexact.
LEDGER_PRECISION = 64
LEDGER_CONTEXT = Context(
    prec=LEDGER_PRECISION,
    traps=[InvalidOperation, Inexact, Overflow, DivisionByZero],
)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeState(Enum):
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


class LedgerError(Exception):
    """Base class for errors that abort a ledger run."""


class InvalidInputError(LedgerError):
    """Malformed input record, or a deposit/withdrawal without a usable amount."""


def exact_add(a: Decimal, b: Decimal) -> Decimal:
    try:
        return LEDGER_CONTEXT.add(a, b)
    except Inexact:
        raise InvalidInputError(f"{a} + {b} exceeds {LEDGER_PRECISION} digits of precision")


def exact_subtract(a: Decimal, b: Decimal) -> Decimal:
    try:
        return LEDGER_CONTEXT.subtract(a, b)
    except Inexact:
        raise InvalidInputError(f"{a} - {b} exceeds {LEDGER_PRECISION} digits of precision")


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class StoredTransaction:
    """Deposit or withdrawal kept around so later disputes can find it."""

    transaction_type: TransactionType
    amount: Decimal


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    total: Decimal = ZERO
    locked: bool = False

    def credit(self, amount: Decimal) -> None:
        self.available, self.total = exact_add(self.available, amount), exact_add(self.total, amount)

    def debit(self, amount: Decimal) -> None:
        self.available, self.total = exact_subtract(self.available, amount), exact_subtract(self.total, amount)

    def hold(self, amount: Decimal) -> None:
        self.available, self.held = exact_subtract(self.available, amount), exact_add(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held, self.available = exact_subtract(self.held, amount), exact_add(self.available, amount)

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Counters for one run."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        else:
            self.ignored += 1

    @property
    def processed(self) -> int:
        return self.applied + self.ignored
