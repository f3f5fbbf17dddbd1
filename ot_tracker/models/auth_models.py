"""
Authentication & Reconciliation Models.

Pydantic models and enumerations for the contracts between the identity
provider, ``AuthService``, the reconciliation routine and the UI layer.
Every auth operation returns a structured, inspectable result rather
than raw strings or exception side-channels.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ot_tracker.models.enums import UserRole


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class Identity(BaseModel):
    """The authenticated identity as reported by the identity provider.

    ``id`` is the provider's stable per-user identifier.  ``email`` may be
    absent for identities created without one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class AuthStateEvent(StrEnum):
    """Authentication-state transitions emitted by the identity provider."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Authentication error categories used by the UI to pick feedback."""

    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_ERROR = "unknown_error"


MSG_MISSING_CREDENTIALS: str = "Por favor ingresa tu correo y contraseña."
MSG_INVALID_CREDENTIALS: str = "Correo o contraseña incorrectos."
MSG_GENERIC_AUTH_ERROR: str = "Revisa tus credenciales o intenta más tarde."

# Substrings of provider error codes/messages -> (category, user message)
SUPABASE_ERROR_MAP: dict[str, tuple[AuthErrorCode, str]] = {
    "invalid_credentials": (AuthErrorCode.INVALID_CREDENTIALS, MSG_INVALID_CREDENTIALS),
    "invalid login credentials": (AuthErrorCode.INVALID_CREDENTIALS, MSG_INVALID_CREDENTIALS),
    "invalid_grant": (AuthErrorCode.INVALID_CREDENTIALS, MSG_INVALID_CREDENTIALS),
    "user_not_found": (AuthErrorCode.INVALID_CREDENTIALS, MSG_INVALID_CREDENTIALS),
}


class AuthResult(BaseModel):
    """Unified response for login.

    Attributes
    ----------
    success:
        ``True`` when the user is signed in.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Translated, user-facing description (``None`` on success).
    user_id:
        The identity id of the signed-in user.
    email:
        The identity email.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

class ReconciliationOutcome(StrEnum):
    """What reconciliation found for an identity."""

    EXISTING = "existing"
    MIGRATED = "migrated"
    UNPROVISIONED = "unprovisioned"


class ReconciliationResult(BaseModel):
    """Result of one reconciliation run.

    ``profile_key`` is the canonical document key the profile
    subscription attaches to; it always equals the identity id.
    ``previous_key`` is set only when a document was migrated.
    ``duplicate_keys`` lists other documents that matched the same email
    and were left untouched.
    """

    outcome: ReconciliationOutcome
    profile_key: str
    previous_key: Optional[str] = None
    duplicate_keys: list[str] = []
    role: Optional[UserRole] = None
