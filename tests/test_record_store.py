"""Tests for the per-user record store and its backends."""
import json
import unittest
import tempfile
import shutil
from datetime import date
from decimal import Decimal
from pathlib import Path

from financeai.records.backends import JsonFileBackend, MemoryBackend, SqliteBackend
from financeai.records.models import Category, NewTransaction, TransactionType
from financeai.records.store import RecordStore
from financeai.utils.exceptions import StorageError


def lunch(amount="25"):
    return NewTransaction(
        amount=Decimal(amount),
        description="lunch",
        category=Category.FOOD_AND_DINING,
        type=TransactionType.EXPENSE,
        date=date(2025, 5, 1)
    )


class FailingBackend(MemoryBackend):
    """Memory backend whose writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def write(self, key, payload):
        if self.fail_writes:
            raise StorageError("disk full")
        super().write(key, payload)


class TestRecordStore(unittest.TestCase):
    """Test RecordStore functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.backend = MemoryBackend()
        self.store = RecordStore(self.backend)

    def test_insert_and_list(self):
        """Test that an inserted record appears once, at the head."""
        first = self.store.insert("alice", lunch("10"))
        second = self.store.insert("alice", lunch("20"))

        records = self.store.list("alice")

        self.assertEqual(records[0], second)
        self.assertEqual(records[1], first)
        self.assertEqual([r.id for r in records].count(second.id), 1)

    def test_insert_assigns_id_and_owner(self):
        """Test generated fields."""
        record = self.store.insert("alice", lunch())

        self.assertTrue(record.id)
        self.assertEqual(record.owner, "alice")
        self.assertEqual(record.amount, Decimal("25"))
        self.assertNotEqual(record.id, self.store.insert("alice", lunch()).id)

    def test_delete(self):
        """Test removing a record."""
        record = self.store.insert("alice", lunch())

        self.assertTrue(self.store.delete("alice", record.id))
        self.assertEqual(self.store.list("alice"), ())

    def test_delete_missing_is_noop(self):
        """Test that an unknown id leaves the collection unchanged."""
        self.store.insert("alice", lunch())
        before = self.store.list("alice")

        self.assertFalse(self.store.delete("alice", "does-not-exist"))
        self.assertEqual(self.store.list("alice"), before)

    def test_user_isolation(self):
        """Test that users do not see each other's records."""
        record = self.store.insert("alice", lunch())

        self.assertEqual(self.store.list("bob"), ())
        self.assertFalse(self.store.delete("bob", record.id))
        self.assertEqual(len(self.store.list("alice")), 1)

    def test_every_mutation_persists_full_collection(self):
        """Test the stored payload after inserts and deletes."""
        first = self.store.insert("alice", lunch("10"))
        self.store.insert("alice", lunch("20"))
        self.store.delete("alice", first.id)

        stored = json.loads(self.backend.read("transactions_alice"))

        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["amount"], "20")
        self.assertEqual(stored[0]["owner"], "alice")

    def test_loads_existing_storage(self):
        """Test that a new store reads what an earlier one wrote."""
        record = self.store.insert("alice", lunch())

        reopened = RecordStore(self.backend)
        self.assertEqual(reopened.list("alice"), (record,))

    def test_memory_authoritative_after_load(self):
        """Test that later external writes are ignored until reload."""
        self.store.insert("alice", lunch())
        self.backend.write("transactions_alice", "[]")

        self.assertEqual(len(self.store.list("alice")), 1)
        self.assertEqual(self.store.reload("alice"), ())

    def test_reload_notifies_listeners(self):
        """Test that a reload is reported like any other change."""
        self.store.insert("alice", lunch())
        events = []
        self.store.subscribe(lambda user, records: events.append((user, len(records))))
        self.backend.write("transactions_alice", "[]")

        self.store.reload("alice")

        self.assertEqual(events, [("alice", 0)])

    def test_evict_rereads_backend(self):
        """Test that an evicted collection is loaded again on next access."""
        record = self.store.insert("alice", lunch())

        self.store.evict("alice")

        self.assertEqual(self.store.list("alice"), (record,))

    def test_corrupted_storage_loads_empty(self):
        """Test that unreadable data does not crash loading."""
        self.backend.write("transactions_alice", "{not json")
        self.assertEqual(self.store.list("alice"), ())

        self.backend.write("transactions_bob", json.dumps([{"id": "x", "amount": "1"}]))
        self.assertEqual(self.store.list("bob"), ())

    def test_failed_write_leaves_state_unchanged(self):
        """Test that memory is untouched when persisting fails."""
        backend = FailingBackend()
        store = RecordStore(backend)
        store.insert("alice", lunch())
        backend.fail_writes = True

        with self.assertRaises(StorageError):
            store.insert("alice", lunch("99"))

        self.assertEqual(len(store.list("alice")), 1)

    def test_subscribe_and_unsubscribe(self):
        """Test change notifications."""
        events = []
        unsubscribe = self.store.subscribe(lambda user, records: events.append((user, len(records))))

        record = self.store.insert("alice", lunch())
        self.store.delete("alice", record.id)
        self.store.delete("alice", "missing")
        unsubscribe()
        self.store.insert("alice", lunch())

        self.assertEqual(events, [("alice", 1), ("alice", 0)])

    def test_failing_listener_does_not_break_store(self):
        """Test that listener errors are contained."""
        def broken(user, records):
            raise RuntimeError("boom")

        self.store.subscribe(broken)
        self.store.insert("alice", lunch())

        self.assertEqual(len(self.store.list("alice")), 1)

    def test_clear(self):
        """Test removing all records of a user."""
        self.store.insert("alice", lunch())
        self.store.insert("alice", lunch())

        self.assertEqual(self.store.clear("alice"), 2)
        self.assertEqual(self.store.list("alice"), ())
        self.assertIsNone(self.backend.read("transactions_alice"))


class TestJsonFileBackend(unittest.TestCase):
    """Test JsonFileBackend functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.backend = JsonFileBackend(self.test_dir)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_round_trip_through_store(self):
        """Test that records survive a new store over the same directory."""
        record = RecordStore(self.backend).insert("user@example.com", lunch())

        reopened = RecordStore(JsonFileBackend(self.test_dir))
        self.assertEqual(reopened.list("user@example.com"), (record,))

    def test_key_sanitized_for_file_name(self):
        """Test that unsafe characters do not escape the directory."""
        self.backend.write("transactions_../../evil", "[]")

        files = [p.name for p in self.test_dir.iterdir()]
        self.assertEqual(files, ["transactions_..%2F..%2Fevil.json"])

    def test_similar_user_ids_do_not_share_storage(self):
        """Test that ids differing only in punctuation keep separate files."""
        store = RecordStore(self.backend)
        record = store.insert("alice@example.com", lunch())

        reopened = RecordStore(JsonFileBackend(self.test_dir))

        self.assertEqual(reopened.list("alice_example.com"), ())
        self.assertEqual(reopened.list("alice@example.com"), (record,))
        self.assertEqual(len(list(self.test_dir.iterdir())), 1)

    def test_missing_key(self):
        """Test reading and removing unknown keys."""
        self.assertIsNone(self.backend.read("nope"))
        self.backend.remove("nope")


class TestSqliteBackend(unittest.TestCase):
    """Test SqliteBackend functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.backend = SqliteBackend(self.test_dir / "records.db")

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_write_read_remove(self):
        """Test basic key/value operations."""
        self.backend.write("k", "[1]")
        self.backend.write("k", "[2]")

        self.assertEqual(self.backend.read("k"), "[2]")

        self.backend.remove("k")
        self.assertIsNone(self.backend.read("k"))

    def test_store_on_sqlite(self):
        """Test the store over the SQLite backend."""
        store = RecordStore(self.backend)
        record = store.insert("alice", lunch())

        self.assertEqual(RecordStore(self.backend).list("alice"), (record,))


if __name__ == "__main__":
    unittest.main()
