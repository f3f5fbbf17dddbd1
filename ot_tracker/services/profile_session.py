"""
Profile Session Controller.

Listens to the identity provider and drives the session through its
two transitions:

``SIGNED_IN``
    release the previous profile subscription, record the identity,
    reconcile, then subscribe to ``users/<identity id>``.  Every pushed
    snapshot replaces the session profile wholesale; a missing document
    clears it while the identity stays signed in.

``SIGNED_OUT``
    release the subscription and clear the session.

Transitions are serialised: reconciliation for one event completes
before the next event is processed.  Releasing a handle never waits for
a delivery in progress; instead every handle's callback carries the
session generation it was opened under, and the session drops snapshots
from any older generation.
"""

from __future__ import annotations

import threading
from functools import partial
from typing import Callable, Optional

from pydantic import ValidationError

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import (
    AuthStateEvent,
    Identity,
    ReconciliationOutcome,
    ReconciliationResult,
)
from ot_tracker.models.user import UserProfile
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.services.base_service import BaseService
from ot_tracker.services.identity_reconciliation import (
    IdentityReconciliationService,
    ReconciliationError,
)
from ot_tracker.stores.base import (
    Document,
    DocumentStoreError,
    IdentityProvider,
)


class ProfileSessionController(BaseService):
    """Owns the session's identity/profile lifecycle.

    Parameters
    ----------
    provider:
        Identity provider whose state events drive the session.
    session:
        The application's single ``SessionManager``.
    reconciliation:
        Service run once per ``SIGNED_IN`` event.
    user_repo:
        Repository used to open the profile subscription.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        session: SessionManager,
        reconciliation: IdentityReconciliationService,
        user_repo: UserRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._provider = provider
        self._session = session
        self._reconciliation = reconciliation
        self._user_repo = user_repo
        self._transition_lock: threading.Lock = threading.Lock()
        self._remove_listener: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin listening to authentication-state events."""
        if self._remove_listener is None:
            self._remove_listener = self._provider.add_listener(self._on_auth_state)

    def stop(self) -> None:
        """Stop listening and tear the session down."""
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self.handle_signed_out()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def handle_signed_in(self, identity: Identity) -> Optional[ReconciliationResult]:
        """Reconcile *identity* and attach its profile subscription.

        Returns the reconciliation result, or ``None`` when reconciliation
        failed (the session then stays signed in with no profile and no
        subscription).
        """
        with self._transition_lock:
            self._release_subscription()
            self._session.set_identity(identity)
            self._session.set_profile(None)

            try:
                result = self._reconciliation.reconcile(identity)
            except ReconciliationError as exc:
                self._logger.error(
                    "Profile unavailable for %s: %s", identity.id, exc.message,
                )
                return None

            if result.outcome == ReconciliationOutcome.UNPROVISIONED:
                self._logger.warning(
                    "No profile provisioned for %s; waiting for one to appear.",
                    identity.email or identity.id,
                )

            callback = partial(self._apply_snapshot, self._session.generation)
            try:
                subscription = self._user_repo.subscribe(result.profile_key, callback)
            except DocumentStoreError as exc:
                self._logger.error(
                    "Could not subscribe to profile %s: %s", result.profile_key, exc,
                )
                return result

            self._session.attach_subscription(subscription)
            self._logger.info(
                "Session started for %s (%s).", identity.id, result.outcome,
            )
            return result

    def handle_signed_out(self) -> None:
        """Release the subscription and clear the session."""
        with self._transition_lock:
            self._release_subscription()
            was_authenticated = self._session.is_authenticated
            self._session.clear()
            if was_authenticated:
                self._logger.info("Session cleared.")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _on_auth_state(self, event: AuthStateEvent, identity: Optional[Identity]) -> None:
        if event == AuthStateEvent.SIGNED_IN and identity is not None:
            self.handle_signed_in(identity)
        else:
            self.handle_signed_out()

    def _release_subscription(self) -> None:
        subscription = self._session.detach_subscription()
        if subscription is not None:
            subscription.release()

    def _apply_snapshot(self, generation: int, snapshot: Optional[Document]) -> None:
        profile: Optional[UserProfile] = None
        if snapshot is None:
            self._logger.info("Profile document absent; clearing profile.")
        else:
            try:
                profile = UserProfile(**snapshot)
            except (ValidationError, TypeError) as exc:
                self._logger.error(
                    "Malformed profile document %s: %s", snapshot.get("id"), exc,
                )
        if not self._session.set_profile(profile, generation=generation):
            self._logger.debug("Dropped snapshot from a released profile subscription.")
