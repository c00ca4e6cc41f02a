"""
Pytest configuration for the journal service tests.

Provides a scripted chat model, an in-memory journal store, a seeded random
generator and a saved entry with two tangents.
"""

import os
import random

import pytest

# Keep the app offline regardless of the developer's .env
os.environ["STORE_BACKEND"] = "memory"
os.environ["RESPONDER_MODE"] = "heuristic"
os.environ.setdefault("ENVIRONMENT", "development")

from unpack.features.database.memory import InMemoryJournalStore  # noqa: E402
from unpack.features.journaling.models import Entry, Tangent  # noqa: E402
from unpack.services.openai_client import ModelUnavailable  # noqa: E402

from tests.fixtures.fakes import FakeChatModel  # noqa: E402


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def failing_model():
    return FakeChatModel(default=ModelUnavailable("connection refused"))


@pytest.fixture
def store():
    return InMemoryJournalStore()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def saved_entry(store):
    """An entry with two tangents already in the store."""
    entry = Entry(
        owner_id="user-1",
        photo_refs=["images/page-1.jpg"],
        extracted_text="Work has been heavy lately. I keep thinking about my sister.",
        overview_text="You wrote about pressure at work and missing your sister.",
    )
    tangents = [
        Tangent(entry_id=entry.id, owner_id="user-1", name="Work Pressure", emotion="fear",
                excerpt="Work has been heavy lately"),
        Tangent(entry_id=entry.id, owner_id="user-1", name="Missing My Sister", emotion="sadness",
                excerpt="thinking about my sister"),
    ]
    store.create_entry_with_tangents(entry, tangents)
    return entry, tangents
