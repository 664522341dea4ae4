"""Session-to-intent binding store."""

import threading
from typing import Optional

from loguru import logger

GLOBAL_SESSION_KEY = "global"


class SessionIntentStore:
    """
    Thread-safe mapping of session id to active intent id.

    Features:
    - At most one active intent per normalized session
    - Blank or missing session ids share the ``global`` binding
    - Bindings never expire; they live as long as the store

    The store does not validate intent ids against the manifest. Each
    operation holds the lock only for a dict access, so it is safe from
    worker threads and from coroutines alike.
    """

    def __init__(self):
        self._bindings: dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize(session_id: Optional[str]) -> str:
        """Trim a session id and map blank/absent ids to the global key."""
        if session_id is None:
            return GLOBAL_SESSION_KEY
        return str(session_id).strip() or GLOBAL_SESSION_KEY

    def set_active_intent(self, session_id: Optional[str], intent_id: str) -> None:
        """Bind ``intent_id`` to the session, replacing any prior binding."""
        key = self.normalize(session_id)
        with self._lock:
            previous = self._bindings.get(key)
            self._bindings[key] = intent_id
        if previous and previous != intent_id:
            logger.info(f"Session {key} switched active intent {previous} -> {intent_id}")
        else:
            logger.info(f"Session {key} active intent set to {intent_id}")

    def get_active_intent(self, session_id: Optional[str]) -> Optional[str]:
        key = self.normalize(session_id)
        with self._lock:
            return self._bindings.get(key)

    def clear_active_intent(self, session_id: Optional[str]) -> None:
        key = self.normalize(session_id)
        with self._lock:
            removed = self._bindings.pop(key, None)
        if removed:
            logger.info(f"Session {key} active intent {removed} cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._bindings)
