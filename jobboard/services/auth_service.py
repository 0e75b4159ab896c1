"""
Admin authentication service.

Keeps the admin session in a mapping (the Flask session cookie in the
frontend, a plain dict in tests) and notifies subscribers whenever the
session appears or disappears.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, MutableMapping, Optional

from jobboard.common.config import Config
from jobboard.common.events import EventQueue, Signal, Subscription
from jobboard.common.logger import get_logger

logger = get_logger(__name__, operation="auth")

SESSION_KEY = "admin_session"
INVALID_CREDENTIALS = "Invalid login credentials"


@dataclass(frozen=True)
class AdminSession:
    """An authenticated admin."""

    email: str
    signed_in_at: str

    def to_dict(self) -> dict:
        return {"email": self.email, "signed_in_at": self.signed_in_at}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["AdminSession"]:
        if not isinstance(data, dict) or not data.get("email"):
            return None
        return cls(email=data["email"], signed_in_at=data.get("signed_in_at", ""))


class AuthService:
    """
    Email/password sign-in against the configured admin account.

    Args:
        store: Mapping that persists the session between requests
        admin_email: Expected email (defaults to Config.ADMIN_EMAIL)
        admin_password: Expected password (defaults to Config.ADMIN_PASSWORD)
        queue: Event queue used to deliver session-change notifications
    """

    def __init__(
        self,
        store: MutableMapping[str, Any],
        admin_email: Optional[str] = None,
        admin_password: Optional[str] = None,
        queue: Optional[EventQueue] = None,
    ):
        self._store = store
        self._admin_email = admin_email if admin_email is not None else Config.ADMIN_EMAIL
        self._admin_password = admin_password if admin_password is not None else Config.ADMIN_PASSWORD
        self._session_changed: Signal[Optional[AdminSession]] = Signal(queue)

    def get_session(self) -> Optional[AdminSession]:
        """The current admin session, or None when signed out."""
        return AdminSession.from_dict(self._store.get(SESSION_KEY))

    def sign_in(self, email: str, password: str) -> Optional[str]:
        """
        Attempt to sign in.

        Returns:
            None on success, otherwise a user-facing error message
        """
        if not self._admin_email or not self._admin_password:
            logger.error("Admin login attempted but ADMIN_EMAIL/ADMIN_PASSWORD are not configured")
            return "Admin login is not configured on this server."

        email_ok = hmac.compare_digest(
            (email or "").strip().lower().encode(), self._admin_email.strip().lower().encode()
        )
        password_ok = hmac.compare_digest((password or "").encode(), self._admin_password.encode())

        if not (email_ok and password_ok):
            logger.warning(f"Failed admin login for {email!r}")
            return INVALID_CREDENTIALS

        session = AdminSession(
            email=self._admin_email,
            signed_in_at=datetime.now(timezone.utc).isoformat(),
        )
        self._store[SESSION_KEY] = session.to_dict()
        logger.info(f"Admin signed in: {session.email}")
        self._session_changed.emit(session)
        return None

    def sign_out(self) -> None:
        """Clear the session. Notifies subscribers only if one existed."""
        had_session = self._store.pop(SESSION_KEY, None) is not None
        if had_session:
            logger.info("Admin signed out")
            self._session_changed.emit(None)

    def on_session_change(
        self, callback: Callable[[Optional[AdminSession]], Any]
    ) -> Subscription:
        """Subscribe to session changes; call unsubscribe() on the result to stop."""
        return self._session_changed.subscribe(callback)
