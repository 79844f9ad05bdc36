"""Unit tests for the JSON session store."""
import json
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone

import pytest

from src.domain.models import Message, SymptomSession
from src.infrastructure.storage.session_store import JsonSessionStore


@pytest.fixture
def temp_storage():
    """Create a temporary storage file for testing."""
    with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json') as f:
        temp_path = f.name

    yield temp_path

    # Cleanup
    if os.path.exists(temp_path):
        os.unlink(temp_path)


def _session(user_id="user-1", minutes_ago=0, text="cough"):
    return SymptomSession(
        user_id=user_id,
        messages=[Message(role="user", content=text)],
        analysis={"riskLevel": "low", "possibleConditions": [{"name": "Common cold", "probability": 100}]},
        emergency={"isEmergency": False},
        timestamp=datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
        language="en",
    )


class TestJsonSessionStore:
    """Test JsonSessionStore functionality."""

    def test_initialization(self, temp_storage):
        """Empty file is initialized with an empty mapping."""
        JsonSessionStore(storage_path=temp_storage)
        with open(temp_storage, 'r') as f:
            assert json.load(f) == {}

    def test_creates_missing_directory(self, tmp_path):
        path = tmp_path / "nested" / "sessions.json"
        JsonSessionStore(storage_path=str(path))
        assert path.exists()

    def test_save_session(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        session = _session()
        session_id = store.save_session(session)

        assert session_id == session.id
        with open(temp_storage, 'r') as f:
            data = json.load(f)
        record = data["user-1"][0]
        assert record["userId"] == "user-1"
        assert record["messages"][0]["content"] == "cough"
        assert record["emergency"] == {"isEmergency": False}

    def test_session_without_user_not_saved(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        assert store.save_session(_session(user_id=None)) == ""
        with open(temp_storage, 'r') as f:
            assert json.load(f) == {}

    def test_get_user_sessions_newest_first(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        store.save_session(_session(minutes_ago=30, text="older"))
        store.save_session(_session(minutes_ago=0, text="newest"))
        store.save_session(_session(minutes_ago=10, text="middle"))
        store.save_session(_session(user_id="someone-else", text="other"))

        sessions = store.get_user_sessions("user-1")
        assert [s.messages[0].content for s in sessions] == ["newest", "middle", "older"]
        assert sessions[0].analysis["riskLevel"] == "low"
        assert sessions[0].timestamp.tzinfo is not None

    def test_max_results(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        for i in range(5):
            store.save_session(_session(minutes_ago=i))
        assert len(store.get_user_sessions("user-1", max_results=2)) == 2

    def test_unknown_user(self, temp_storage):
        assert JsonSessionStore(storage_path=temp_storage).get_user_sessions("nobody") == []

    def test_corrupt_file(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        with open(temp_storage, 'w') as f:
            f.write("{not json")
        assert store.get_user_sessions("user-1") == []

    def test_corrupt_record_skipped(self, temp_storage):
        store = JsonSessionStore(storage_path=temp_storage)
        store.save_session(_session(text="good"))
        with open(temp_storage, 'r') as f:
            data = json.load(f)
        data["user-1"].append({"messages": "broken", "timestamp": "not a date"})
        with open(temp_storage, 'w') as f:
            json.dump(data, f)

        sessions = store.get_user_sessions("user-1")
        assert [s.messages[0].content for s in sessions] == ["good"]


class TestConcurrentSaves:
    """Several tabs saving at once must not lose each other's sessions."""

    def test_parallel_saves_all_kept(self, temp_storage):
        def worker(user_id):
            # a store per thread, as each Streamlit session builds its own
            store = JsonSessionStore(storage_path=temp_storage)
            for i in range(20):
                store.save_session(_session(user_id=user_id, minutes_ago=i, text=f"{user_id}-{i}"))

        threads = [threading.Thread(target=worker, args=(f"user-{n}",)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        store = JsonSessionStore(storage_path=temp_storage)
        counts = [len(store.get_user_sessions(f"user-{n}", max_results=100)) for n in range(8)]
        assert counts == [20] * 8

    def test_no_temp_files_left(self, tmp_path):
        store = JsonSessionStore(storage_path=str(tmp_path / "sessions.json"))
        store.save_session(_session())
        assert [p.name for p in tmp_path.iterdir()] == ["sessions.json"]
