"""
Identity Reconciliation Service.

Runs once per sign-in and makes the user's profile addressable by the
identity provider's stable id.

Profiles are created out-of-band (by an administrator, by a previous
client, or by an import), so the stored key does not always equal the
identity id.  Strategy:

    1. Profile keyed by the identity id exists  -> nothing to write.
    2. Otherwise look profiles up by exact email:
         - none          -> unprovisioned (not an error)
         - one or more   -> copy the canonical match under the identity
                            id, then delete the original.
    3. No id match and no email                 -> unprovisioned.

The copy and the delete are two separate writes.  A failure between
them leaves a duplicate profile, never a lost one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import (
    Identity,
    ReconciliationOutcome,
    ReconciliationResult,
)
from ot_tracker.models.enums import UserRole
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.services.base_service import BaseService
from ot_tracker.stores.base import Document, DocumentStoreError
from ot_tracker.utils.audit import log_audit_event
from ot_tracker.utils.string_helpers import normalize_keys
from ot_tracker.utils.timestamps import normalize_timestamp

# Documents without a usable created_at sort after every dated one.
_UNDATED: datetime = datetime.max.replace(tzinfo=timezone.utc)


class ReconciliationError(Exception):
    """Custom exception for identity reconciliation failures."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


def select_canonical_profile(documents: list[Document]) -> Document:
    """Pick the document to migrate when several share one email.

    Earliest ``created_at`` wins; ties (and undated documents) are
    broken by document id.

    Raises:
        ValueError: If *documents* is empty.
    """
    if not documents:
        raise ValueError("No candidate profiles to choose from.")

    def _sort_key(document: Document) -> tuple[datetime, str]:
        try:
            created = normalize_timestamp(normalize_keys(document).get("created_at"))
        except ValueError:
            created = None
        return (created or _UNDATED, str(document.get("id", "")))

    return min(documents, key=_sort_key)


def _role_of(document: Document) -> Optional[UserRole]:
    try:
        return UserRole(str(document.get("role")))
    except ValueError:
        return None


class IdentityReconciliationService(BaseService):
    """Reconciles an authenticated identity with its profile document."""

    def __init__(
        self,
        repo: UserRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo

    def reconcile(self, identity: Identity) -> ReconciliationResult:
        """Make the profile for *identity* addressable by ``identity.id``.

        Args:
            identity: The identity just reported by the provider.

        Returns:
            The outcome and the canonical profile key.

        Raises:
            ReconciliationError: If a store read or the copy write fails.
        """
        try:
            return self._reconcile(identity)
        except ReconciliationError:
            raise
        except Exception as exc:
            self._logger.error(
                "Reconciliation: Unexpected error for identity %s. Error: %s",
                identity.id,
                exc,
                exc_info=True,
            )
            raise ReconciliationError(
                f"Unexpected error during profile reconciliation: {exc}",
                original_error=exc,
            ) from exc

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _reconcile(self, identity: Identity) -> ReconciliationResult:
        existing: Optional[Document] = self._repo.get_document(identity.id)
        if existing is not None:
            self._logger.debug("Reconciliation: profile %s already canonical.", identity.id)
            return ReconciliationResult(
                outcome=ReconciliationOutcome.EXISTING,
                profile_key=identity.id,
                role=_role_of(existing),
            )

        if not identity.email:
            self._logger.info(
                "Reconciliation: identity %s has no email and no profile.", identity.id,
            )
            return self._unprovisioned(identity)

        matches = self._repo.find_documents_by_email(identity.email)
        if not matches:
            self._logger.info(
                "Reconciliation: no profile found for %s.", identity.email,
            )
            return self._unprovisioned(identity)

        source = select_canonical_profile(matches)
        duplicates = [
            str(document.get("id"))
            for document in matches
            if document is not source
        ]
        if duplicates:
            self._logger.warning(
                "Reconciliation: %d profiles share email %s; migrating %s, leaving %s.",
                len(matches),
                identity.email,
                source.get("id"),
                ", ".join(duplicates),
            )

        return self._migrate(identity, source, duplicates)

    def _migrate(
        self,
        identity: Identity,
        source: Document,
        duplicates: list[str],
    ) -> ReconciliationResult:
        """Copy *source* under the identity id, then delete the original.

        The copy is written with snake_case keys whatever the source used.
        """
        previous_key = str(source.get("id"))
        migrated: Document = {**normalize_keys(source), "id": identity.id}

        self._logger.info(
            "Reconciliation: migrating profile %s -> %s", previous_key, identity.id,
        )
        self._repo.put_document(identity.id, migrated)

        try:
            self._repo.delete(previous_key)
        except DocumentStoreError as exc:
            self._logger.error(
                "Reconciliation: copied profile %s to %s but could not delete "
                "the original; duplicate left in place. Error: %s",
                previous_key,
                identity.id,
                exc,
            )

        log_audit_event(
            logger=self._logger,
            action="MIGRATE_PROFILE",
            entity_type="UserProfile",
            entity_id=identity.id,
            user_id=identity.id,
            details={"previous_id": previous_key, "email": identity.email},
        )

        return ReconciliationResult(
            outcome=ReconciliationOutcome.MIGRATED,
            profile_key=identity.id,
            previous_key=previous_key,
            duplicate_keys=duplicates,
            role=_role_of(source),
        )

    @staticmethod
    def _unprovisioned(identity: Identity) -> ReconciliationResult:
        return ReconciliationResult(
            outcome=ReconciliationOutcome.UNPROVISIONED,
            profile_key=identity.id,
        )
