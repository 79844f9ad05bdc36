"""JSON-file storage for finished symptom sessions."""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from src.application.ports import SessionStorePort
from src.domain.models import SymptomSession


logger = logging.getLogger(__name__)


class JsonSessionStore(SessionStorePort):
    """Stores sessions per user id in a single JSON document.

    Streamlit serves every browser tab from its own thread, so each store
    shares one lock per file with every other store on the same path.
    """

    _locks: Dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize JsonSessionStore.

        Args:
            storage_path: Path to JSON file for session storage.
                         Defaults to .streamlit/sessions.json
        """
        if storage_path is None:
            # .streamlit is git-ignored; resolve from this file up to the project root
            project_root = Path(__file__).parent.parent.parent.parent
            storage_path = str(project_root / ".streamlit" / "sessions.json")

        self.storage_path = storage_path
        self._lock = self._lock_for(storage_path)
        self._ensure_storage_exists()

    @classmethod
    def _lock_for(cls, storage_path: str) -> threading.Lock:
        key = os.path.realpath(storage_path)
        with cls._locks_guard:
            return cls._locks.setdefault(key, threading.Lock())

    def _ensure_storage_exists(self) -> None:
        """Create storage directory and file if they don't exist."""
        storage_dir = os.path.dirname(self.storage_path)
        if storage_dir and not os.path.exists(storage_dir):
            os.makedirs(storage_dir, exist_ok=True)

        with self._lock:
            if not os.path.exists(self.storage_path) or os.path.getsize(self.storage_path) == 0:
                self._save_all({})

    def _load_all(self) -> Dict[str, List[Dict[str, Any]]]:
        try:
            with open(self.storage_path, 'r') as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            logger.warning("Session store %s unreadable; starting empty", self.storage_path)
            return {}

    def _save_all(self, sessions: Dict[str, List[Dict[str, Any]]]) -> None:
        # Write beside the target and swap it in, so readers never see half a file
        fd, tmp_path = tempfile.mkstemp(
            dir=os.path.dirname(self.storage_path) or None, prefix=".sessions-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(sessions, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.storage_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def save_session(self, session: SymptomSession) -> str:
        """
        Append a session to its user's history.

        Returns:
            The session id, or an empty string when the session has no user id
        """
        if not session.user_id:
            logger.warning("Session has no user id. Session will not be saved.")
            return ""

        record = session.to_dict()
        with self._lock:
            sessions = self._load_all()
            sessions.setdefault(session.user_id, []).append(record)
            self._save_all(sessions)
        return session.id

    def get_user_sessions(self, user_id: str, max_results: int = 10) -> List[SymptomSession]:
        """Return a user's sessions, newest first."""
        with self._lock:
            records = self._load_all().get(user_id, [])

        sessions: List[SymptomSession] = []
        for record in records:
            try:
                sessions.append(SymptomSession.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping corrupt session record for %s: %s", user_id, e)

        sessions.sort(key=lambda s: s.timestamp, reverse=True)
        return sessions[:max_results]
