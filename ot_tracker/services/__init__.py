"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
``SessionManager`` for user context.

The ``create_services()`` factory wires every backend adapter, repository
and service together, returning a typed dict that the view layer can
consume without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from ot_tracker.auth import SessionManager
from ot_tracker.config import AppConfig
from ot_tracker.database import DatabaseManager
from ot_tracker.logger import get_logger
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.repositories.work_order_repository import WorkOrderRepository
from ot_tracker.services.auth_service import AuthService
from ot_tracker.services.home import HomeService
from ot_tracker.services.identity_reconciliation import IdentityReconciliationService
from ot_tracker.services.profile_session import ProfileSessionController
from ot_tracker.services.reports import ReportService
from ot_tracker.services.users import UserService
from ot_tracker.services.work_orders import WorkOrderService
from ot_tracker.stores.base import BlobStore, DocumentStore, IdentityProvider
from ot_tracker.stores.supabase_blobs import SupabaseBlobStore
from ot_tracker.stores.supabase_documents import SupabaseDocumentStore
from ot_tracker.stores.supabase_identity import SupabaseIdentityProvider


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    auth_service: AuthService
    session_controller: ProfileSessionController
    reconciliation_service: IdentityReconciliationService
    work_order_service: WorkOrderService
    user_service: UserService
    report_service: ReportService
    home_service: HomeService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    session: SessionManager,
    store: Optional[DocumentStore] = None,
    blobs: Optional[BlobStore] = None,
    provider: Optional[IdentityProvider] = None,
) -> ServiceContainer:
    """
    Wire all adapters, repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup and passes the
    returned dict to views as needed.  Any of the three backend adapters
    may be supplied instead of the Supabase default.

    Args:
        db: Initialised DatabaseManager holding the Supabase client.
        config: Application configuration.
        session: The application's single session holder.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
        The session controller is already listening to the provider.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Backend adapters
    # ------------------------------------------------------------------
    if store is None:
        store = SupabaseDocumentStore(
            db=db,
            logger=get_logger("store"),
            poll_interval_s=config.SUBSCRIPTION_POLL_INTERVAL_S,
        )
    if blobs is None:
        blobs = SupabaseBlobStore(db=db, bucket=config.STORAGE_BUCKET, logger=logger)
    if provider is None:
        provider = SupabaseIdentityProvider(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Repositories (data-access layer)
    # ------------------------------------------------------------------
    user_repo = UserRepository(
        store=store, logger=logger, collection=config.USERS_COLLECTION,
    )
    work_order_repo = WorkOrderRepository(
        store=store, logger=logger, collection=config.WORK_ORDERS_COLLECTION,
    )

    # ------------------------------------------------------------------
    # 3. Session services
    # ------------------------------------------------------------------
    reconciliation_service = IdentityReconciliationService(repo=user_repo, logger=logger)
    session_controller = ProfileSessionController(
        provider=provider,
        session=session,
        reconciliation=reconciliation_service,
        user_repo=user_repo,
        logger=logger,
    )
    session_controller.start()

    auth_service = AuthService(provider=provider, session=session, logger=logger)

    # ------------------------------------------------------------------
    # 4. Domain services
    # ------------------------------------------------------------------
    work_order_service = WorkOrderService(
        repo=work_order_repo,
        blobs=blobs,
        logger=logger,
        evidence_prefix=config.EVIDENCE_PREFIX,
    )
    user_service = UserService(repo=user_repo, logger=logger)
    report_service = ReportService(
        repo=work_order_repo,
        logger=logger,
        export_dir=config.EXPORT_DIR,
        date_format=config.EXPORT_DATE_FORMAT,
    )
    home_service = HomeService(
        work_orders=work_order_service,
        logger=logger,
        recent_limit=config.HOME_RECENT_LIMIT,
    )

    return ServiceContainer(
        auth_service=auth_service,
        session_controller=session_controller,
        reconciliation_service=reconciliation_service,
        work_order_service=work_order_service,
        user_service=user_service,
        report_service=report_service,
        home_service=home_service,
    )
