"""Tests for the journal stores and photo storage."""

import pytest

from unpack.features.conversation.messages import Message
from unpack.features.database.client import SupabaseJournalStore
from unpack.features.database.memory import InMemoryJournalStore
from unpack.features.journaling.models import Entry, Tangent
from unpack.services.storage import PhotoStorage
from unpack.shared.errors import NotFound, PersistenceFailure
from tests.fixtures.fakes import FakeSupabaseClient


def _entry_with_tangents(owner_id="user-1", count=2):
    entry = Entry(owner_id=owner_id, extracted_text="Some text", overview_text="You wrote about text.")
    tangents = [
        Tangent(entry_id=entry.id, owner_id=owner_id, name=f"Thread {i}", emotion="joy")
        for i in range(count)
    ]
    return entry, tangents


class BrokenTangentStore(InMemoryJournalStore):
    def _insert_tangents(self, tangents):
        raise RuntimeError("disk full")


class BrokenMessageDeleteStore(InMemoryJournalStore):
    def _delete_messages(self, tangent_id):
        raise RuntimeError("connection reset")


class BrokenTangentDeleteStore(InMemoryJournalStore):
    def _delete_tangent(self, tangent_id):
        raise RuntimeError("connection reset")


class TestInMemoryStore:
    def test_entries_listed_newest_first_per_owner(self, store):
        older, _ = _entry_with_tangents()
        newer, _ = _entry_with_tangents()
        other, _ = _entry_with_tangents(owner_id="user-2")
        older = older.model_copy(update={"created_at": newer.created_at.replace(year=2020)})
        for entry in (older, newer, other):
            store.create_entry_with_tangents(entry, [])

        assert [e.id for e in store.list_entries("user-1")] == [newer.id, older.id]
        assert [e.id for e in store.list_entries("user-1", limit=1)] == [newer.id]

    def test_mark_interacted_is_sticky(self, store, saved_entry):
        _, tangents = saved_entry
        assert store.mark_interacted(tangents[0].id).interacted is True
        assert store.mark_interacted(tangents[0].id).interacted is True
        assert store.get_tangent(tangents[1].id).interacted is False

    def test_message_for_unknown_tangent_rejected(self, store):
        with pytest.raises(NotFound):
            store.add_message(Message(tangent_id="missing", role="user", content="hi"))


class TestAtomicWrites:
    def test_failed_tangent_insert_leaves_no_entry(self):
        store = BrokenTangentStore()
        entry, tangents = _entry_with_tangents()

        with pytest.raises(PersistenceFailure):
            store.create_entry_with_tangents(entry, tangents)

        assert store.get_entry(entry.id) is None
        assert store.list_tangents(entry.id) == []

    def test_delete_tangent_removes_it_with_its_messages(self, store, saved_entry):
        _, tangents = saved_entry
        store.add_message(Message(tangent_id=tangents[0].id, role="ai", content="Hello"))

        store.delete_tangent(tangents[0].id)

        assert store.get_tangent(tangents[0].id) is None
        assert store.list_messages(tangents[0].id) == []
        assert store.get_tangent(tangents[1].id) is not None

    def test_failed_message_delete_keeps_tangent_whole(self):
        store = BrokenMessageDeleteStore()
        entry, tangents = _entry_with_tangents()
        store.create_entry_with_tangents(entry, tangents)
        store.add_message(Message(tangent_id=tangents[0].id, role="ai", content="Hello"))

        with pytest.raises(PersistenceFailure):
            store.delete_tangent(tangents[0].id)

        assert store.get_tangent(tangents[0].id) is not None
        assert len(store.list_messages(tangents[0].id)) == 1

    def test_failed_tangent_delete_keeps_history(self):
        store = BrokenTangentDeleteStore()
        entry, tangents = _entry_with_tangents()
        store.create_entry_with_tangents(entry, tangents)
        store.add_message(Message(tangent_id=tangents[0].id, role="ai", content="Hello"))

        with pytest.raises(PersistenceFailure):
            store.delete_tangent(tangents[0].id)

        assert store.get_tangent(tangents[0].id) is not None
        assert [m.content for m in store.list_messages(tangents[0].id)] == ["Hello"]

    def test_delete_unknown_tangent(self, store):
        with pytest.raises(NotFound):
            store.delete_tangent("missing")


class TestSupabaseStore:
    def test_round_trip_uses_original_columns(self):
        client = FakeSupabaseClient()
        store = SupabaseJournalStore(client)
        entry, tangents = _entry_with_tangents()

        store.create_entry_with_tangents(entry, tangents)

        row = client.tables["entries"][0]
        assert row["user_id"] == "user-1"
        assert row["overview"] == "You wrote about text."
        assert client.tables["tangents"][0]["is_interacted"] is False
        assert store.get_entry(entry.id) == entry
        assert [t.id for t in store.list_tangents(entry.id)] == [t.id for t in tangents]

    def test_compensation_deletes_entry(self):
        client = FakeSupabaseClient()
        client.fail_tables = {"insert": ("tangents",)}
        store = SupabaseJournalStore(client)
        entry, tangents = _entry_with_tangents()

        with pytest.raises(PersistenceFailure):
            store.create_entry_with_tangents(entry, tangents)

        assert client.tables["entries"] == []

    def test_messages_and_cascade_delete(self):
        client = FakeSupabaseClient()
        store = SupabaseJournalStore(client)
        entry, tangents = _entry_with_tangents()
        store.create_entry_with_tangents(entry, tangents)

        store.add_message(Message(tangent_id=tangents[0].id, role="ai", content="Hello"))
        store.add_message(Message(tangent_id=tangents[0].id, role="user", content="Hi"))
        assert [m.role for m in store.list_messages(tangents[0].id)] == ["ai", "user"]
        assert store.mark_interacted(tangents[0].id).interacted is True

        store.delete_tangent(tangents[0].id)

        assert client.tables["messages"] == []
        assert [row["id"] for row in client.tables["tangents"]] == [tangents[1].id]

    def test_failed_message_delete_restores_tangent(self):
        client = FakeSupabaseClient()
        store = SupabaseJournalStore(client)
        entry, tangents = _entry_with_tangents()
        store.create_entry_with_tangents(entry, tangents)
        store.add_message(Message(tangent_id=tangents[0].id, role="ai", content="Hello"))
        client.fail_tables = {"delete": ("messages",)}

        with pytest.raises(PersistenceFailure):
            store.delete_tangent(tangents[0].id)

        assert store.get_tangent(tangents[0].id) == tangents[0]
        assert [m.content for m in store.list_messages(tangents[0].id)] == ["Hello"]

    def test_read_errors_become_persistence_failures(self):
        client = FakeSupabaseClient()
        client.fail_tables = {"select": ("entries",)}

        with pytest.raises(PersistenceFailure):
            SupabaseJournalStore(client).list_entries("user-1")

    def test_mark_unknown_tangent(self):
        with pytest.raises(NotFound):
            SupabaseJournalStore(FakeSupabaseClient()).mark_interacted("missing")


class TestPhotoStorage:
    def test_upload_and_sign(self):
        client = FakeSupabaseClient()
        storage = PhotoStorage(client, bucket="entry-photos", url_ttl=31536000)

        key = storage.upload(b"\xff\xd8jpeg", "image/jpeg")

        assert key.startswith("images/") and key.endswith(".jpg")
        assert client.objects[("entry-photos", key)] == b"\xff\xd8jpeg"
        assert storage.signed_url(key).startswith("https://storage.example.com/entry-photos/images/")
        assert client.signed == [(key, 31536000)]
