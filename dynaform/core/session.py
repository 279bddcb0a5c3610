"""
Session store for form sessions.

Each session holds a FormSession for one form version being filled in.
Sessions are created when a client opens a form version and are dropped
after a period of inactivity. Nothing outlives the process.
"""

import threading
import time
import uuid

from dynaform.core.form_state import FormSession
from dynaform.core.schema import FormVersion


# Default session timeout: 30 minutes
DEFAULT_SESSION_TIMEOUT_SECONDS = 30 * 60


class Session:
    """A single stored form session with access timestamps."""

    def __init__(self, form: FormSession):
        self.form: FormSession = form
        self.created_at: float = time.time()
        self.last_accessed_at: float = time.time()

    def touch(self) -> None:
        """Update the last accessed timestamp."""
        self.last_accessed_at = time.time()

    def is_expired(self, timeout_seconds: int = DEFAULT_SESSION_TIMEOUT_SECONDS) -> bool:
        """Check if the session has expired."""
        return (time.time() - self.last_accessed_at) > timeout_seconds


class SessionStore:
    """In-memory store for form sessions.

    Thread-safe for basic use. The FormSession inside a Session is not
    itself locked: each session is expected to have a single writer.
    """

    def __init__(self, timeout_seconds: int = DEFAULT_SESSION_TIMEOUT_SECONDS):
        self._sessions: dict[str, Session] = {}
        self._timeout_seconds = timeout_seconds
        self._lock = threading.RLock()

    def create_session(
        self,
        version: FormVersion,
        session_id: str | None = None,
    ) -> tuple[str, Session]:
        """Create a new session for a loaded form version.

        Args:
            version: The validated form version.
            session_id: Optional custom ID. Auto-generated if not provided.

        Returns:
            Tuple of (session_id, Session).
        """
        if session_id is None:
            session_id = str(uuid.uuid4())

        session = Session(FormSession(version))

        with self._lock:
            self._sessions[session_id] = session
        return session_id, session

    def get_session(self, session_id: str) -> Session | None:
        """Retrieve a session by ID.

        Returns None if the session doesn't exist or has expired.
        Automatically cleans up expired sessions.
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            return None

        if session.is_expired(self._timeout_seconds):
            with self._lock:
                if session_id in self._sessions:
                    del self._sessions[session_id]
            return None

        session.touch()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed."""
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Returns the count of removed sessions."""
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if session.is_expired(self._timeout_seconds)
            ]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def count(self) -> int:
        """Return the number of active sessions."""
        with self._lock:
            return len(self._sessions)

    def list_session_ids(self) -> list[str]:
        """Return all active session IDs."""
        with self._lock:
            return list(self._sessions.keys())
