"""Transaction records and their storage."""
from .models import Category, TransactionType, NewTransaction, Transaction, CATEGORY_NAMES, MAX_AMOUNT
from .backends import StorageBackend, MemoryBackend, JsonFileBackend, SqliteBackend, create_backend
from .store import RecordStore

__all__ = [
    "Category",
    "TransactionType",
    "NewTransaction",
    "Transaction",
    "CATEGORY_NAMES",
    "StorageBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "SqliteBackend",
    "create_backend",
    "RecordStore",
]
