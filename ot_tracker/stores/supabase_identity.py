"""
Supabase Auth (GoTrue) identity provider.

Provider errors are raised unchanged from :meth:`sign_in`; translating
them into user-facing messages is ``AuthService``'s job.
"""

from __future__ import annotations

from typing import Any, Optional

from ot_tracker.database import DatabaseManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import AuthStateEvent, Identity
from ot_tracker.stores.base import IdentityProvider


def _to_identity(user: Any, session: Any) -> Identity:
    return Identity(
        id=str(user.id),
        email=user.email or None,
        access_token=getattr(session, "access_token", None),
        refresh_token=getattr(session, "refresh_token", None),
    )


class SupabaseIdentityProvider(IdentityProvider):
    """``IdentityProvider`` over ``supabase.auth``."""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__()
        self._db: DatabaseManager = db
        self._logger: StructuredLogger = logger

    def sign_in(self, email: str, password: str) -> Identity:
        response = self._db.supabase.auth.sign_in_with_password({
            "email": email,
            "password": password,
        })
        identity = _to_identity(response.user, response.session)
        self._logger.debug("Identity provider signed in %s", identity.id)
        self._emit(AuthStateEvent.SIGNED_IN, identity)
        return identity

    def sign_out(self) -> None:
        try:
            self._db.supabase.auth.sign_out()
        finally:
            self._emit(AuthStateEvent.SIGNED_OUT, None)

    def restore(self) -> Optional[Identity]:
        session = self._db.supabase.auth.get_session()
        if session is None or session.user is None:
            return None
        identity = _to_identity(session.user, session)
        self._logger.debug("Restored provider session for %s", identity.id)
        self._emit(AuthStateEvent.SIGNED_IN, identity)
        return identity
