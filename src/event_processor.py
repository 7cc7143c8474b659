import logging
from decimal import Decimal

from models import (
    ClientAccount,
    DisputeState,
    InvalidInputError,
    ProcessingResult,
    StoredTransaction,
    Transaction,
    TransactionType,
    ZERO,
)
from ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class EventProcessor:
    """
    Applies transactions to a LedgerStore, one at a time, in input order.

    Dispute workflow violations (unknown transaction, double dispute, resolve or
    chargeback out of sequence) and insufficient funds are not errors: the event
    is dropped and IGNORED is returned. The only raised error is
    InvalidInputError for a deposit/withdrawal without a usable amount.
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: the event changed ledger state
            IGNORED: the event was a no-op under the ledger rules

        Raises:
            InvalidInputError: deposit or withdrawal with missing or negative amount
        """
        account = self._store.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                raise InvalidInputError(f"tx {transaction.transaction_id}: unknown transaction type {transaction.transaction_type!r}")

    def _require_amount(self, transaction: Transaction) -> Decimal:
        amount = transaction.amount
        if amount is None:
            raise InvalidInputError(
                f"{transaction.transaction_type.value} tx {transaction.transaction_id}: missing amount"
            )
        if not amount.is_finite() or amount < ZERO:
            raise InvalidInputError(
                f"{transaction.transaction_type.value} tx {transaction.transaction_id}: invalid amount {amount}"
            )
        return amount

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._require_amount(transaction)

        # Locked accounts still accept deposits.
        account.credit(amount)
        self._store.record_transaction(
            transaction.transaction_id,
            transaction.client_id,
            StoredTransaction(TransactionType.DEPOSIT, amount),
        )
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._require_amount(transaction)

        if account.available < amount:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {amount}), ignoring")
            return ProcessingResult.IGNORED

        account.debit(amount)
        self._store.record_transaction(
            transaction.transaction_id,
            transaction.client_id,
            StoredTransaction(TransactionType.WITHDRAWAL, amount),
        )
        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        tx_id, client_id = transaction.transaction_id, transaction.client_id
        original = self._store.get_transaction(tx_id, client_id)

        if original is None:
            logger.debug(f"Dispute for tx {tx_id}: no transaction for client {client_id}, ignoring")
            return ProcessingResult.IGNORED

        current = self._store.get_dispute_state(tx_id, client_id)
        if current is not None:
            logger.debug(f"Dispute for tx {tx_id}: already {current.value}, ignoring")
            return ProcessingResult.IGNORED

        # Disputed withdrawals move nothing, the funds already left available.
        if original.transaction_type == TransactionType.DEPOSIT:
            account.hold(min(account.available, original.amount))

        self._store.set_dispute_state(tx_id, client_id, DisputeState.DISPUTED)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        tx_id, client_id = transaction.transaction_id, transaction.client_id
        original = self._store.get_transaction(tx_id, client_id)

        if original is None:
            logger.debug(f"Resolve for tx {tx_id}: no transaction for client {client_id}, ignoring")
            return ProcessingResult.IGNORED

        if self._store.get_dispute_state(tx_id, client_id) != DisputeState.DISPUTED:
            logger.debug(f"Resolve for tx {tx_id}: transaction not under dispute, ignoring")
            return ProcessingResult.IGNORED

        if original.transaction_type == TransactionType.DEPOSIT:
            account.release_hold(min(account.held, original.amount))

        self._store.set_dispute_state(tx_id, client_id, DisputeState.RESOLVED)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        tx_id, client_id = transaction.transaction_id, transaction.client_id
        original = self._store.get_transaction(tx_id, client_id)

        if original is None:
            logger.debug(f"Chargeback for tx {tx_id}: no transaction for client {client_id}, ignoring")
            return ProcessingResult.IGNORED

        if self._store.get_dispute_state(tx_id, client_id) != DisputeState.RESOLVED:
            logger.debug(f"Chargeback for tx {tx_id}: dispute not resolved, ignoring")
            return ProcessingResult.IGNORED

        if original.transaction_type == TransactionType.DEPOSIT:
            account.debit(min(account.available, original.amount))
            account.lock()
            logger.info(f"Client {client_id}: account locked after chargeback of tx {tx_id}")
        else:
            # Reverses the withdrawal, the account stays unlocked.
            account.credit(original.amount)

        self._store.set_dispute_state(tx_id, client_id, DisputeState.CHARGED_BACK)
        return ProcessingResult.APPLIED


def process_event(store: LedgerStore, transaction: Transaction) -> ProcessingResult:
    """Apply one transaction to store."""
    return EventProcessor(store).process_transaction(transaction)
