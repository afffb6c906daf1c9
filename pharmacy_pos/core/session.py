"""Checkout session management"""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional
from dataclasses import dataclass

from ..services.sale_manager import CartState, SaleTransactionManager


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CheckoutSession:
    """One POS checkout: a cart and the manager that commits it"""
    session_id: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    manager: SaleTransactionManager

    def touch(self) -> None:
        self.updated_at = _now()


class CheckoutSessionManager:
    """Manages checkout sessions"""

    def __init__(self, manager_factory: Callable[[str, str], SaleTransactionManager]):
        """
        Args:
            manager_factory: Builds a SaleTransactionManager from
                (session_id, owner_id)
        """
        self.manager_factory = manager_factory
        self.sessions: dict[str, CheckoutSession] = {}

    def create_session(self, owner_id: str) -> CheckoutSession:
        """Create a new session"""
        now = _now()
        session_id = str(uuid.uuid4())
        session = CheckoutSession(
            session_id=session_id,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            manager=self.manager_factory(session_id, owner_id),
        )
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: int = 12) -> int:
        """Remove idle sessions older than max_age_hours; in-flight commits are kept"""
        now = _now()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
            and session.manager.state != CartState.COMMIT_IN_FLIGHT
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        return len(old_sessions)
