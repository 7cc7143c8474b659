import csv
import logging
from dataclasses import replace
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, TextIO

from models import ClientAccount, InvalidInputError, ProcessingStats, Transaction, TransactionType
from ledger_store import LedgerStore
from event_processor import EventProcessor

logger = logging.getLogger(__name__)

DISPLAY_SCALE = 4
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
MAX_AMOUNT_INTEGER_DIGITS = 28
MAX_AMOUNT_SCALE = 28


def _parse_id(value: Optional[str], name: str, maximum: int) -> int:
    if not value:
        raise ValueError(f"missing {name}")
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"{name} is not an unsigned integer: {value!r}")
    parsed = int(value)
    if parsed > maximum:
        raise ValueError(f"{name} out of range: {value}")
    return parsed


def _parse_amount(value: Optional[str]) -> Optional[Decimal]:
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"amount is not a decimal: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"amount is not a decimal: {value!r}")
    if amount.adjusted() >= MAX_AMOUNT_INTEGER_DIGITS:
        raise ValueError(f"amount has more than {MAX_AMOUNT_INTEGER_DIGITS} integer digits: {value!r}")
    if -amount.as_tuple().exponent > MAX_AMOUNT_SCALE:
        raise ValueError(f"amount has more than {MAX_AMOUNT_SCALE} fractional digits: {value!r}")
    return amount


def parse_csv_row(row: Dict[Optional[str], object]) -> Transaction:
    """
    Parse a csv.DictReader row into a Transaction.
    Raises ValueError if the row cannot be decoded.
    """
    if None in row:
        raise ValueError(f"too many fields: {row[None]}")

    normalized = {k.strip(): (v or "").strip() for k, v in row.items()}

    transaction_type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        raise ValueError(f"unknown transaction type {transaction_type_str!r}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=_parse_id(normalized.get("client"), "client", MAX_CLIENT_ID),
        transaction_id=_parse_id(normalized.get("tx"), "tx", MAX_TRANSACTION_ID),
        amount=_parse_amount(normalized.get("amount")),
    )


def read_transactions(stream: TextIO) -> Iterable[Transaction]:
    """Yield transactions from a CSV stream in file order, failing on the first bad row."""
    reader = csv.DictReader(stream)
    try:
        for row in reader:
            yield parse_csv_row(row)
    except (ValueError, csv.Error) as e:
        raise InvalidInputError(f"line {reader.line_num}: {e}") from e


def round_amount(amount: Decimal, scale: int = DISPLAY_SCALE) -> Decimal:
    # Enough digits for the integer part, the scale and a rounding carry.
    context = Context(prec=max(amount.adjusted(), 0) + scale + 2, rounding=ROUND_HALF_UP)
    return amount.quantize(Decimal(1).scaleb(-scale), context=context)


def snapshot(store: LedgerStore, scale: int = DISPLAY_SCALE) -> List[ClientAccount]:
    """
    Copies of every account, ordered by client id, with balances rounded to
    `scale` fractional digits. The store keeps full precision.
    """
    accounts = store.all_accounts()
    return [
        replace(
            accounts[client_id],
            available=round_amount(accounts[client_id].available, scale),
            held=round_amount(accounts[client_id].held, scale),
            total=round_amount(accounts[client_id].total, scale),
        )
        for client_id in sorted(accounts.keys())
    ]


class LedgerEngine:
    """
    Replays a transaction log against a fresh ledger.
    Single pass, strictly in input order, aborts on the first invalid input.
    """

    def __init__(self, store: Optional[LedgerStore] = None):
        self._store = store if store is not None else LedgerStore()
        self._processor = EventProcessor(self._store)
        self._stats = ProcessingStats()

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        with open(filepath, "r", newline="") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        return self.process_transactions(read_transactions(stream))

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        for transaction in transactions:
            result = self._processor.process_transaction(transaction)
            self._stats.record(result)

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Applied: {self._stats.applied}, "
            f"Ignored: {self._stats.ignored}"
        )
        return self._store.all_accounts()

    def snapshot(self, scale: int = DISPLAY_SCALE) -> List[ClientAccount]:
        return snapshot(self._store, scale)
