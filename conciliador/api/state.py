import os
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional
import threading

from conciliador.common.models import BankReconciliation, BillsReconciliation


# Session-Based State Management
# Each client session (X-Session-ID) gets its own isolated state
class AppState:
    def __init__(self):
        self.reconciliation: Optional[BankReconciliation] = None
        self.bills_reconciliation: Optional[BillsReconciliation] = None
        self.last_accessed = datetime.now()

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()


class SessionManager:
    """Manages multiple user sessions with automatic cleanup"""

    def __init__(self, session_timeout_hours: Optional[float] = None):
        if session_timeout_hours is None:
            session_timeout_hours = float(os.getenv("CONCILIADOR_SESSION_TIMEOUT_HOURS", "4"))
        self._sessions: Dict[str, AppState] = {}
        self._lock = threading.Lock()
        self.session_timeout = timedelta(hours=session_timeout_hours)

    def get_or_create_session(self, session_id: str) -> AppState:
        """Get existing session or create a new one"""
        with self._lock:
            if session_id not in self._sessions:
                self._sessions[session_id] = AppState()

            state = self._sessions[session_id]
            state.touch()
            return state

    def delete_session(self, session_id: str) -> bool:
        """Delete a specific session"""
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def cleanup_inactive_sessions(self) -> int:
        """Remove sessions that haven't been accessed within timeout period"""
        with self._lock:
            now = datetime.now()
            inactive_sessions = [
                sid for sid, state in self._sessions.items()
                if now - state.last_accessed > self.session_timeout
            ]

            for sid in inactive_sessions:
                del self._sessions[sid]

            return len(inactive_sessions)

    def get_session_count(self) -> int:
        """Get number of active sessions"""
        with self._lock:
            return len(self._sessions)

    @staticmethod
    def generate_session_id() -> str:
        """Generate a new unique session ID"""
        return str(uuid.uuid4())


# Global Session Manager Instance
session_manager = SessionManager()


def get_session_state(request):
    """
    Helper function to get session state from request.
    Import this in endpoints instead of importing from main.py to avoid circular imports.

    Args:
        request: FastAPI Request object with session_id in request.state

    Returns:
        AppState: The session state for this request
    """
    from conciliador.common.logging_config import get_logger
    logger = get_logger("api.state")

    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        # This should not happen if middleware is working correctly
        logger.warning("No session_id found in request.state, creating new session")
        session_id = session_manager.generate_session_id()
        request.state.session_id = session_id

    return session_manager.get_or_create_session(session_id)
