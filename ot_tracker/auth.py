"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that holds, for the lifetime of
one desktop session:

- the authenticated ``Identity`` (id, email, tokens),
- the current ``UserProfile`` (absent while unprovisioned or deleted),
- the single active profile ``Subscription``.

Create one instance at startup and pass it to every screen-level
component.  ``ProfileSessionController`` owns the transitions; views only
read from it and register profile listeners.

Usage::

    from ot_tracker.auth import SessionManager

    session = SessionManager(logger=get_logger("session"))
    remove = session.add_profile_listener(lambda profile: print(profile))
    ...
    profile = session.get_current_user()
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ot_tracker.logger import StructuredLogger, get_logger
from ot_tracker.models.auth_models import Identity
from ot_tracker.models.user import UserProfile
from ot_tracker.stores.base import Subscription

ProfileListener = Callable[[Optional[UserProfile]], None]


class SessionManager:
    """Injectable holder for the current identity and profile.

    Listeners are notified outside the internal lock, on whichever
    thread changed the profile.  A listener that raises is logged and
    the remaining listeners still run.

    Every detach of the profile subscription starts a new *generation*.
    Snapshots tagged with an older generation are dropped by
    :meth:`set_profile`, so a delivery still in flight on a released
    handle can never overwrite the state of a later session.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._logger: StructuredLogger = logger or get_logger("session")
        self._identity: Optional[Identity] = None
        self._profile: Optional[UserProfile] = None
        self._subscription: Optional[Subscription] = None
        self._generation: int = 0
        self._listeners: list[ProfileListener] = []

    # -- Identity ------------------------------------------------------------

    def set_identity(self, identity: Identity) -> None:
        """Record *identity* as the authenticated session identity."""
        with self._lock:
            self._identity = identity

    @property
    def identity(self) -> Optional[Identity]:
        with self._lock:
            return self._identity

    @property
    def access_token(self) -> Optional[str]:
        """Return the current access token, or ``None`` if not set."""
        with self._lock:
            return self._identity.access_token if self._identity else None

    @property
    def is_authenticated(self) -> bool:
        """``True`` while an identity is signed in, with or without a profile."""
        with self._lock:
            return self._identity is not None

    # -- Profile -------------------------------------------------------------

    @property
    def current_profile(self) -> Optional[UserProfile]:
        with self._lock:
            return self._profile

    def get_current_user(self) -> UserProfile:
        """Return the current profile.

        Raises:
            RuntimeError: If no profile is loaded for this session.
        """
        with self._lock:
            if self._profile is None:
                raise RuntimeError(
                    "No profile is loaded for this session. Login required."
                )
            return self._profile

    @property
    def is_admin(self) -> bool:
        with self._lock:
            return self._profile is not None and self._profile.is_admin

    @property
    def generation(self) -> int:
        """Tag for snapshots delivered to the subscription attached next."""
        with self._lock:
            return self._generation

    def set_profile(
        self,
        profile: Optional[UserProfile],
        generation: Optional[int] = None,
    ) -> bool:
        """Replace the current profile wholesale and notify listeners.

        When *generation* is given and is no longer current, nothing
        changes and ``False`` is returned.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._profile = profile
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(profile)
            except Exception:
                self._logger.exception("Profile listener %r failed", listener)
        return True

    def add_profile_listener(self, listener: ProfileListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    # -- Subscription --------------------------------------------------------

    def attach_subscription(self, subscription: Subscription) -> None:
        """Hold *subscription* as the session's single active handle.

        Raises:
            RuntimeError: If another handle is still attached.
        """
        with self._lock:
            if self._subscription is not None:
                raise RuntimeError("A profile subscription is already attached.")
            self._subscription = subscription

    def detach_subscription(self) -> Optional[Subscription]:
        """Remove and return the active handle without releasing it.

        Starts a new generation, even when no handle was attached.  The
        caller releases the handle outside this object's lock.
        """
        with self._lock:
            self._generation += 1
            subscription, self._subscription = self._subscription, None
            return subscription

    @property
    def has_subscription(self) -> bool:
        with self._lock:
            return self._subscription is not None

    # -- Teardown ------------------------------------------------------------

    def clear(self) -> None:
        """Forget identity and profile, ending the session.

        The subscription must already be detached and released.
        """
        with self._lock:
            self._identity = None
        self.set_profile(None)
