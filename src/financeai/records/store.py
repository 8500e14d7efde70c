"""Per-user transaction record store."""
import json
import uuid
from typing import Callable, Dict, List, Tuple

from .models import NewTransaction, Transaction
from .backends import StorageBackend
from financeai.utils.logger import get_logger
from financeai.utils.exceptions import StorageError

logger = get_logger()

Listener = Callable[[str, Tuple[Transaction, ...]], None]


class RecordStore:
    """Owns the transaction collections of all users.

    Each user's collection is read from the backend the first time it is
    touched; after that the in-memory copy is authoritative and every
    mutation overwrites the stored payload with the full collection.
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._records: Dict[str, Tuple[Transaction, ...]] = {}
        self._listeners: List[Listener] = []

    def list(self, user_id: str) -> Tuple[Transaction, ...]:
        """Return the user's transactions, most recent first."""
        return self._load(user_id)

    def insert(self, user_id: str, candidate: NewTransaction) -> Transaction:
        """Store a new transaction at the head of the user's collection."""
        transaction = Transaction(
            id=uuid.uuid4().hex,
            amount=candidate.amount,
            description=candidate.description,
            category=candidate.category,
            type=candidate.type,
            date=candidate.date,
            owner=user_id,
        )

        records = (transaction,) + self._load(user_id)
        self._commit(user_id, records)

        logger.info(
            f"Added {transaction.type.value} of {transaction.amount} "
            f"({transaction.category.value}) as {transaction.id}"
        )
        return transaction

    def delete(self, user_id: str, transaction_id: str) -> bool:
        """Remove a transaction; returns False when no record has that id."""
        current = self._load(user_id)
        records = tuple(t for t in current if t.id != transaction_id)

        if len(records) == len(current):
            logger.debug(f"Delete ignored, no transaction {transaction_id}")
            return False

        self._commit(user_id, records)
        logger.info(f"Deleted transaction {transaction_id}")
        return True

    def clear(self, user_id: str) -> int:
        """Remove all of a user's transactions, returning how many were dropped."""
        count = len(self._load(user_id))
        self.backend.remove(self.storage_key(user_id))
        self._records[user_id] = ()
        self._notify(user_id, ())
        return count

    def reload(self, user_id: str) -> Tuple[Transaction, ...]:
        """Discard the in-memory copy and read the user's collection again."""
        self._records.pop(user_id, None)
        records = self._load(user_id)
        self._notify(user_id, records)
        return records

    def evict(self, user_id: str) -> None:
        """Drop the in-memory copy; the next access reads the backend again."""
        self._records.pop(user_id, None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def storage_key(user_id: str) -> str:
        return f"transactions_{user_id}"

    def _load(self, user_id: str) -> Tuple[Transaction, ...]:
        if user_id in self._records:
            return self._records[user_id]

        records = self._read_backend(user_id)
        self._records[user_id] = records
        logger.debug(f"Loaded {len(records)} transactions for {user_id}")
        return records

    def _read_backend(self, user_id: str) -> Tuple[Transaction, ...]:
        """Read and decode the stored collection; unusable data loads as empty."""
        try:
            payload = self.backend.read(self.storage_key(user_id))
        except StorageError as e:
            logger.warning(f"Storage unavailable for {user_id}, starting empty: {e}")
            return ()

        if not payload:
            return ()

        try:
            return tuple(Transaction.from_dict(item) for item in json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Corrupted transaction data for {user_id}, starting empty: {e}")
            return ()

    def _commit(self, user_id: str, records: Tuple[Transaction, ...]) -> None:
        payload = json.dumps([t.to_dict() for t in records], ensure_ascii=False)
        # Memory only changes once the write succeeded
        self.backend.write(self.storage_key(user_id), payload)
        self._records[user_id] = records
        self._notify(user_id, records)

    def _notify(self, user_id: str, records: Tuple[Transaction, ...]) -> None:
        for listener in list(self._listeners):
            try:
                listener(user_id, records)
            except Exception as e:
                logger.error(f"Record listener {listener!r} failed: {e}")
