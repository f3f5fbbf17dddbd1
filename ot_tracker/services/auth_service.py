"""
Authentication Service.

Single orchestrator for the login screen: sign-in, sign-out, session
restore and error classification.  Sits between the UI layer and the
identity provider so that ``LoginView`` remains a thin form handler.

Profile handling is not done here: the provider emits ``SIGNED_IN`` /
``SIGNED_OUT`` and ``ProfileSessionController`` reacts to them.

All methods return typed ``AuthResult`` models; the UI never inspects
raw exceptions.
"""

from __future__ import annotations

from typing import Optional

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import (
    MSG_GENERIC_AUTH_ERROR,
    MSG_MISSING_CREDENTIALS,
    SUPABASE_ERROR_MAP,
    AuthErrorCode,
    AuthResult,
    Identity,
)
from ot_tracker.services.base_service import BaseService
from ot_tracker.stores.base import IdentityProvider


class AuthService(BaseService):
    """Centralised authentication service.

    Parameters
    ----------
    provider:
        The identity provider.
    session:
        Injectable session holder, read for logging on logout.
    logger:
        Structured JSON logger for audit-grade logging.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        session: SessionManager,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._provider: IdentityProvider = provider
        self._session: SessionManager = session

    @staticmethod
    def normalize_email(email: str) -> str:
        """Strip surrounding whitespace.  Case is preserved."""
        return email.strip()

    # ==================================================================
    # Login
    # ==================================================================

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email + password.

        No retry: a failure leaves the session signed out and returns a
        single translated message.

        Parameters
        ----------
        email:
            The raw email entered by the user.
        password:
            The raw password entered by the user.

        Returns
        -------
        AuthResult
            ``success=True`` on authentication, or a structured error
            with ``error_code`` and ``error_message`` on failure.
        """
        email = self.normalize_email(email)
        if not email or not password:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.VALIDATION_ERROR,
                error_message=MSG_MISSING_CREDENTIALS,
            )

        try:
            identity: Identity = self._provider.sign_in(email, password)
        except Exception as exc:
            return self._classify_login_error(exc)

        self._logger.info(
            "User authenticated: %s",
            identity.email or email,
            extra={"event": "LOGIN", "user_id": identity.id},
        )
        return AuthResult(
            success=True,
            user_id=identity.id,
            email=identity.email or email,
        )

    def _classify_login_error(self, exc: Exception) -> AuthResult:
        """Map a provider or network exception to an ``AuthResult``."""
        # RuntimeError: backend client not configured.
        if isinstance(exc, (ConnectionError, TimeoutError, RuntimeError)):
            self._logger.warning(
                "Network error during login: %s", exc,
                extra={"event": "LOGIN_NETWORK_ERROR"},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message=MSG_GENERIC_AUTH_ERROR,
            )

        error_str = f"{getattr(exc, 'code', '') or ''} {exc}".lower()

        for code_key, (error_code, human_message) in SUPABASE_ERROR_MAP.items():
            if code_key in error_str:
                self._logger.warning(
                    "Auth error (%s): %s", code_key, exc,
                    extra={"event": "LOGIN_FAILED", "error_code": code_key},
                )
                return AuthResult(
                    success=False,
                    error_code=error_code,
                    error_message=human_message,
                )

        self._logger.warning(
            "Unknown login error: %s", exc,
            extra={"event": "LOGIN_FAILED", "error_code": "unknown"},
        )
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.UNKNOWN_ERROR,
            error_message=MSG_GENERIC_AUTH_ERROR,
        )

    # ==================================================================
    # Logout / restore
    # ==================================================================

    def logout(self) -> None:
        """Sign out with the provider.

        Provider errors are logged; the provider still emits
        ``SIGNED_OUT`` so the local session is always torn down.
        """
        identity = self._session.identity
        user_id = identity.id if identity else "unknown"

        try:
            self._provider.sign_out()
        except Exception as exc:
            self._logger.warning("Server-side sign_out failed for %s: %s", user_id, exc)

        self._logger.info(
            "User logged out: %s", user_id,
            extra={"event": "LOGOUT", "user_id": user_id},
        )

    def restore_session(self) -> Optional[AuthResult]:
        """Resume a session the provider still holds, if any.

        Returns ``None`` when there is nothing to restore.
        """
        try:
            identity = self._provider.restore()
        except Exception as exc:
            self._logger.warning("Session restore failed: %s", exc)
            return None

        if identity is None:
            return None

        self._logger.info(
            "Session restored for %s", identity.email or identity.id,
            extra={"event": "SESSION_RESTORED", "user_id": identity.id},
        )
        return AuthResult(success=True, user_id=identity.id, email=identity.email)
