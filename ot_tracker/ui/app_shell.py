"""Application Host Shell.

The top-level ``CTk`` window that orchestrates the application
lifecycle: login → host shell (header + tabs) → logout.

All dependencies are injected via the constructor.  The shell contains
no business logic: it delegates authentication to ``LoginView`` /
``AuthService`` and lets ``ProfileSessionController`` keep the session
profile current.  Profile and list pushes arrive on store threads and
are posted to the main loop through a ``UiDispatcher``.
"""

from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker import __version__ as _APP_VERSION
from ot_tracker.auth import SessionManager
from ot_tracker.config import AppConfig
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import AuthResult
from ot_tracker.models.enums import ROLE_LABELS
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services import ServiceContainer
from ot_tracker.ui.background import run_in_background
from ot_tracker.ui.dispatcher import UiDispatcher
from ot_tracker.ui.login_view import LoginView
from ot_tracker.ui.theme import (
    CONTENT_BG,
    DANGER,
    DANGER_HOVER,
    FONT_BODY,
    FONT_HEADING,
    FONT_SMALL,
    HEADER_BG,
    HEADER_TEXT,
    LOGIN_WINDOW_HEIGHT,
    LOGIN_WINDOW_WIDTH,
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
    PADDING_MD,
    PADDING_SM,
    TEXT_SECONDARY,
)
from ot_tracker.ui.views.create_order_view import CreateOrderView
from ot_tracker.ui.views.home_view import HomeView
from ot_tracker.ui.views.orders_view import OrdersView
from ot_tracker.ui.views.profile_view import ProfileView
from ot_tracker.ui.views.reports_view import ReportsView
from ot_tracker.ui.views.users_view import UsersView

_TAB_HOME: str = "Inicio"
_TAB_ORDERS: str = "Órdenes"
_TAB_CREATE: str = "Nueva Orden"
_TAB_PROFILE: str = "Mi Perfil"
_TAB_REPORTS: str = "Reportes"
_TAB_USERS: str = "Usuarios"


class AppShell(ctk.CTk):
    """Host Shell: the main application window.

    Lifecycle
    ---------
    1. On boot: displays the ``LoginView`` and tries to resume a session
       the identity provider still holds.
    2. On successful login: builds the header and the tab view, opened
       on Inicio.  The Reportes and Usuarios tabs exist only for
       administrators.
    3. Profile pushes: the header is refreshed, and the tabs are rebuilt
       when the role changes or the profile appears / disappears.
    4. Logout: signs out and returns to login.

    Parameters
    ----------
    config:
        Application configuration.
    session:
        The application's single session holder.
    services:
        Fully-wired service container.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        config: AppConfig,
        session: SessionManager,
        services: ServiceContainer,
        logger: StructuredLogger,
    ) -> None:
        super().__init__()

        self._config = config
        self._session = session
        self._services = services
        self._logger = logger

        self._login_view: Optional[LoginView] = None
        self._header: Optional[ctk.CTkFrame] = None
        self._user_label: Optional[ctk.CTkLabel] = None
        self._content: Optional[ctk.CTkFrame] = None
        self._tabs: Optional[ctk.CTkTabview] = None
        # Admin flag the tabs were built for; None while no profile is loaded.
        self._built_for_admin: Optional[bool] = None

        self.title("Órdenes de Trabajo - Hospital Collipulli")
        ctk.set_appearance_mode("light")
        ctk.set_default_color_theme("green")

        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._dispatcher = UiDispatcher(self, logger)
        self._dispatcher.start()

        self._remove_profile_listener: Callable[[], None] = session.add_profile_listener(
            self._on_profile_pushed,
        )

        self._show_login()
        self._try_restore_session()

    # ==================================================================
    # View transitions
    # ==================================================================

    def _show_login(self) -> None:
        """Display the login view and size the window appropriately."""
        self._clear_main_shell()

        self.geometry(f"{LOGIN_WINDOW_WIDTH}x{LOGIN_WINDOW_HEIGHT}")
        self.resizable(True, True)
        self.minsize(LOGIN_WINDOW_WIDTH, LOGIN_WINDOW_HEIGHT)

        self._login_view = LoginView(
            parent=self,
            auth_service=self._services["auth_service"],
            on_login_success=self._handle_login_success,
            logger=self._logger,
        )
        self._login_view.pack(fill="both", expand=True)

    def _show_main_shell(self) -> None:
        """Build the header and the content area."""
        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.minsize(800, 500)

        self._header = ctk.CTkFrame(self, fg_color=HEADER_BG, corner_radius=0, height=56)
        self._header.pack(side="top", fill="x")
        ctk.CTkLabel(
            self._header,
            text="Hospital Collipulli · OT",
            font=FONT_HEADING,
            text_color=HEADER_TEXT,
        ).pack(side="left", padx=PADDING_MD, pady=PADDING_SM)
        ctk.CTkLabel(
            self._header,
            text=f"v{_APP_VERSION}",
            font=FONT_SMALL,
            text_color=HEADER_TEXT,
        ).pack(side="right", padx=PADDING_MD)
        self._user_label = ctk.CTkLabel(
            self._header, text="", font=FONT_BODY, text_color=HEADER_TEXT,
        )
        self._user_label.pack(side="right", padx=PADDING_SM)

        self._build_content()

    def _build_content(self) -> None:
        """(Re)build the tab view for the current profile."""
        if self._content is not None:
            self._content.destroy()
        self._tabs = None

        self._content = ctk.CTkFrame(self, fg_color=CONTENT_BG, corner_radius=0)
        self._content.pack(side="top", fill="both", expand=True)

        profile = self._session.current_profile
        self._update_header(profile)

        if profile is None:
            self._built_for_admin = None
            self._show_profile_unavailable()
            return

        self._built_for_admin = profile.is_admin
        tabs = ctk.CTkTabview(self._content, fg_color=CONTENT_BG)
        tabs.pack(fill="both", expand=True, padx=PADDING_SM, pady=PADDING_SM)
        self._tabs = tabs

        HomeView(
            parent=tabs.add(_TAB_HOME),
            session=self._session,
            home_service=self._services["home_service"],
            on_new_order=lambda: tabs.set(_TAB_CREATE),
            on_view_orders=lambda: tabs.set(_TAB_ORDERS),
            dispatcher=self._dispatcher,
            logger=self._logger,
        ).pack(fill="both", expand=True)

        OrdersView(
            parent=tabs.add(_TAB_ORDERS),
            session=self._session,
            work_order_service=self._services["work_order_service"],
            dispatcher=self._dispatcher,
            logger=self._logger,
        ).pack(fill="both", expand=True)

        CreateOrderView(
            parent=tabs.add(_TAB_CREATE),
            session=self._session,
            work_order_service=self._services["work_order_service"],
            on_created=self._on_order_created,
            logger=self._logger,
        ).pack(fill="both", expand=True)

        if profile.is_admin:
            ReportsView(
                parent=tabs.add(_TAB_REPORTS),
                session=self._session,
                report_service=self._services["report_service"],
                logger=self._logger,
            ).pack(fill="both", expand=True)
            UsersView(
                parent=tabs.add(_TAB_USERS),
                session=self._session,
                user_service=self._services["user_service"],
                dispatcher=self._dispatcher,
                logger=self._logger,
            ).pack(fill="both", expand=True)

        ProfileView(
            parent=tabs.add(_TAB_PROFILE),
            session=self._session,
            user_service=self._services["user_service"],
            on_logout=self._handle_logout,
            dispatcher=self._dispatcher,
            logger=self._logger,
        ).pack(fill="both", expand=True)

        tabs.set(_TAB_HOME)

    def _show_profile_unavailable(self) -> None:
        """Signed in but no profile document (yet)."""
        box = ctk.CTkFrame(self._content, fg_color="transparent")
        box.place(relx=0.5, rely=0.5, anchor="center")
        ctk.CTkLabel(
            box,
            text=(
                "Tu perfil no está disponible.\n"
                "Contacta al administrador para que lo habilite."
            ),
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_MD))
        ctk.CTkButton(
            box,
            text="Cerrar sesión",
            fg_color=DANGER,
            hover_color=DANGER_HOVER,
            command=self._handle_logout,
        ).pack()

    def _update_header(self, profile: Optional[UserProfile]) -> None:
        if self._user_label is None:
            return
        if profile is None:
            identity = self._session.identity
            text = identity.email if identity and identity.email else ""
        else:
            role = ROLE_LABELS.get(profile.role, profile.role)
            text = f"{profile.name or profile.email} ({role})"
        self._user_label.configure(text=text)

    def _clear_main_shell(self) -> None:
        """Destroy header, content and the login view if present."""
        if self._login_view is not None:
            self._login_view.destroy()
            self._login_view = None
        if self._content is not None:
            self._content.destroy()
            self._content = None
        if self._header is not None:
            self._header.destroy()
            self._header = None
        self._user_label = None
        self._tabs = None
        self._built_for_admin = None

    # ==================================================================
    # Auth lifecycle
    # ==================================================================

    def _try_restore_session(self) -> None:
        run_in_background(
            self,
            self._services["auth_service"].restore_session,
            self._on_restore_result,
            name="session-restore",
        )

    def _on_restore_result(self, result: Optional[AuthResult]) -> None:
        if result is None or not result.success:
            return
        if self._login_view is None:
            return
        self._handle_login_success()

    def _handle_login_success(self) -> None:
        """Called by ``LoginView`` once the provider has signed in.

        Reconciliation already ran behind the ``SIGNED_IN`` event, so the
        profile subscription is in place by now.
        """
        self._clear_main_shell()
        identity = self._session.identity
        self._logger.info(
            "Login successful: %s", identity.email if identity else "unknown",
        )
        self._show_main_shell()

    def _handle_logout(self) -> None:
        """Delegate logout to AuthService and return to login screen."""
        self._services["auth_service"].logout()
        self._show_login()

    def _on_profile_pushed(self, profile: Optional[UserProfile]) -> None:
        # Runs on the store thread.
        self._dispatcher.post(self._apply_profile_change)

    def _apply_profile_change(self) -> None:
        if self._header is None:
            return
        if not self._session.is_authenticated:
            self._show_login()
            return

        profile = self._session.current_profile
        admin_flag = profile.is_admin if profile is not None else None
        if admin_flag != self._built_for_admin:
            self._build_content()
        else:
            self._update_header(profile)

    def _on_order_created(self, order: WorkOrder) -> None:
        self._logger.info("Order %s created from the UI.", order.id)
        if self._tabs is not None:
            self._tabs.set(_TAB_ORDERS)

    def _on_close(self) -> None:
        """Release the profile subscription, then destroy the window."""
        self._remove_profile_listener()
        self._services["session_controller"].stop()
        self._dispatcher.stop()
        self.destroy()
