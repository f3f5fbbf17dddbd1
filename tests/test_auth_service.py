"""
Authentication service tests.

Tests cover:
  - Successful login drives the session through reconciliation
  - Input validation
  - Provider error classification (single translated message, no retry)
  - Logout and session restore
"""
import pytest

from ot_tracker.models.auth_models import (
    MSG_GENERIC_AUTH_ERROR,
    MSG_INVALID_CREDENTIALS,
    MSG_MISSING_CREDENTIALS,
    AuthErrorCode,
    Identity,
)
from ot_tracker.services.auth_service import AuthService
from ot_tracker.services.identity_reconciliation import IdentityReconciliationService
from ot_tracker.services.profile_session import ProfileSessionController


class ProviderError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


@pytest.fixture()
def controller(provider, session, user_repo, logger):
    ctrl = ProfileSessionController(
        provider=provider,
        session=session,
        reconciliation=IdentityReconciliationService(repo=user_repo, logger=logger),
        user_repo=user_repo,
        logger=logger,
    )
    ctrl.start()
    yield ctrl
    ctrl.stop()


@pytest.fixture()
def auth(provider, session, logger, controller):
    provider.register(Identity(id="B2", email="x@y.com", access_token="tok"), "secret")
    return AuthService(provider=provider, session=session, logger=logger)


class TestLogin:
    def test_success(self, auth, store, session):
        store.seed("users", {"id": "A1", "email": "x@y.com", "name": "Xavier"})

        result = auth.login("  x@y.com ", "secret")

        assert result.success
        assert result.user_id == "B2"
        assert session.access_token == "tok"
        assert session.current_profile.id == "B2"

    @pytest.mark.parametrize("email, password", [("", "secret"), ("   ", "secret"), ("x@y.com", "")])
    def test_missing_credentials(self, auth, session, email, password):
        result = auth.login(email, password)

        assert result.error_code == AuthErrorCode.VALIDATION_ERROR
        assert result.error_message == MSG_MISSING_CREDENTIALS
        assert session.is_authenticated is False

    def test_wrong_password(self, auth, session):
        result = auth.login("x@y.com", "nope")

        assert not result.success
        assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS
        assert result.error_message == MSG_INVALID_CREDENTIALS
        assert session.is_authenticated is False

    def test_email_is_not_lowercased(self, auth):
        assert not auth.login("X@Y.COM", "secret").success

    def test_error_code_attribute_is_classified(self, auth, provider):
        provider.sign_in_error = ProviderError("Bad request", code="invalid_credentials")

        result = auth.login("x@y.com", "secret")

        assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS

    @pytest.mark.parametrize("error", [
        ConnectionError("unreachable"),
        TimeoutError("slow"),
        RuntimeError("Supabase client is not initialised."),
    ])
    def test_network_errors(self, auth, provider, error):
        provider.sign_in_error = error

        result = auth.login("x@y.com", "secret")

        assert result.error_code == AuthErrorCode.NETWORK_ERROR
        assert result.error_message == MSG_GENERIC_AUTH_ERROR

    def test_unknown_error(self, auth, provider, session):
        provider.sign_in_error = ProviderError("Email not confirmed")

        result = auth.login("x@y.com", "secret")

        assert result.error_code == AuthErrorCode.UNKNOWN_ERROR
        assert result.error_message == MSG_GENERIC_AUTH_ERROR
        assert session.is_authenticated is False


class TestLogoutAndRestore:
    def test_logout_tears_down_session(self, auth, session):
        auth.login("x@y.com", "secret")

        auth.logout()

        assert session.is_authenticated is False
        assert session.has_subscription is False

    def test_restore_with_stored_session(self, auth, provider, session, controller):
        auth.login("x@y.com", "secret")
        controller.handle_signed_out()

        result = auth.restore_session()

        assert result.success
        assert result.user_id == "B2"
        assert session.is_authenticated is True

    def test_restore_without_session(self, auth):
        assert auth.restore_session() is None

    def test_restore_failure_returns_none(self, auth, provider, monkeypatch):
        def _boom():
            raise ConnectionError("offline")

        monkeypatch.setattr(provider, "restore", _boom)

        assert auth.restore_session() is None
