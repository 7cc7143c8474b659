from typing import Dict, Optional, Tuple

from models import ClientAccount, DisputeState, StoredTransaction

TransactionKey = Tuple[int, int]


class LedgerStore:
    """
    In-memory state for one run: client accounts, deposits/withdrawals kept
    for dispute lookups, and the dispute state of each disputed transaction.
    Transactions and disputes are keyed by (transaction_id, client_id).
    No business rules live here.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[TransactionKey, StoredTransaction] = {}
        self._disputes: Dict[TransactionKey, DisputeState] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def record_transaction(self, transaction_id: int, client_id: int, transaction: StoredTransaction) -> None:
        """Store transaction for future dispute lookups. Overwrites any previous entry."""
        self._transactions[(transaction_id, client_id)] = transaction

    def get_transaction(self, transaction_id: int, client_id: int) -> Optional[StoredTransaction]:
        """Retrieve stored transaction by ID and owning client."""
        return self._transactions.get((transaction_id, client_id))

    def has_transaction(self, transaction_id: int, client_id: int) -> bool:
        return (transaction_id, client_id) in self._transactions

    def get_dispute_state(self, transaction_id: int, client_id: int) -> Optional[DisputeState]:
        """None means the transaction was never disputed."""
        return self._disputes.get((transaction_id, client_id))

    def set_dispute_state(self, transaction_id: int, client_id: int, state: DisputeState) -> None:
        self._disputes[(transaction_id, client_id)] = state

    def all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
