"""
Authentication Service
Form-driven auth actions that delegate to the auth provider and answer with redirects
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks

from auth_portal.config import Settings
from auth_portal.models.messages import AuthActionResult, MessageKind
from auth_portal.utils.logger import get_audit_logger
from auth_portal.utils.redirects import encode_redirect, redirect_to
from auth_portal.utils.supabase_client import AuthProvider, ProviderError

logger = logging.getLogger(__name__)
audit = get_audit_logger()

SIGN_UP_PATH = "/sign-up"
SIGN_IN_PATH = "/sign-in"
FORGOT_PASSWORD_PATH = "/forgot-password"
RESET_PASSWORD_PATH = "/dashboard/reset-password"
DASHBOARD_PATH = "/dashboard"
AUTH_CALLBACK_PATH = "/auth/callback"

RATE_LIMIT_PHRASE = "For security purposes, you can only request this after"
RATE_LIMIT_MESSAGE = "邮件发送过于频繁，请等待30秒后再试。为了安全考虑，我们限制了邮件发送频率。"


def is_safe_relative_path(path: Optional[str]) -> bool:
    """True for same-site paths like /dashboard (not //host or schemes)"""
    return bool(path) and path.startswith('/') and not path.startswith('//') and '\\' not in path


class AuthService:
    """Auth action handlers: validate, call the provider, pick a redirect"""

    def __init__(self, provider: AuthProvider, settings: Settings):
        self.provider = provider
        self.settings = settings

    def _origin(self, origin: Optional[str]) -> str:
        return (origin or self.settings.site_url).rstrip('/')

    async def sign_up(self, email: Optional[str], password: Optional[str], origin: Optional[str] = None) -> AuthActionResult:
        """
        Register with email and password.

        On success the user is sent to sign-in with a reminder to confirm
        their email. Rate-limit errors get a friendlier message.
        """
        if not email or not password:
            return encode_redirect(MessageKind.ERROR, SIGN_UP_PATH, "Email and password are required")

        try:
            await self.provider.sign_up(
                email,
                password,
                email_redirect_to=f"{self._origin(origin)}{AUTH_CALLBACK_PATH}?redirect_to={DASHBOARD_PATH}",
            )
        except ProviderError as e:
            logger.error(f"Sign up failed: {e.code} {e.message}")
            audit.log_auth_event("sign_up", "error", email, {"code": e.code})
            if RATE_LIMIT_PHRASE in e.message:
                return encode_redirect(MessageKind.ERROR, SIGN_UP_PATH, RATE_LIMIT_MESSAGE)
            return encode_redirect(MessageKind.ERROR, SIGN_UP_PATH, e.message)

        audit.log_auth_event("sign_up", "success", email)
        return encode_redirect(
            MessageKind.SUCCESS,
            SIGN_IN_PATH,
            "Please check your email to confirm your account before signing in."
        )

    async def sign_in(
        self,
        email: Optional[str],
        password: Optional[str],
        background_tasks: Optional[BackgroundTasks] = None
    ) -> AuthActionResult:
        """
        Sign in with email and password, then go to the dashboard.

        Account initialization runs after the response when background
        tasks are available, otherwise inline; it never blocks the redirect.
        """
        if not email or not password:
            return encode_redirect(MessageKind.ERROR, SIGN_IN_PATH, "Email and password are required")

        try:
            await self.provider.sign_in_with_password(email, password)
        except ProviderError as e:
            logger.error(f"Sign in failed: {e.code} {e.message}")
            audit.log_auth_event("sign_in", "error", email, {"code": e.code})
            return encode_redirect(MessageKind.ERROR, SIGN_IN_PATH, e.message)

        audit.log_auth_event("sign_in", "success", email)

        if background_tasks is not None:
            background_tasks.add_task(self.initialize_account)
        else:
            await self.initialize_account()

        return redirect_to(DASHBOARD_PATH)

    async def initialize_account(self) -> None:
        """Create the customer record if needed. Failures are only logged."""
        try:
            data = await self.provider.initialize_account()
        except ProviderError as e:
            logger.error(f"Failed to initialize user account: {e}")
            return
        except Exception as e:
            logger.error(f"Error calling initialize_user_account: {e}", exc_info=True)
            return
        logger.info(f"User account initialized successfully: {data}")

    async def sign_in_with_oauth(self, provider_name: str = "google") -> AuthActionResult:
        """Start an OAuth sign-in and send the browser to the provider"""
        try:
            url = await self.provider.sign_in_with_oauth(
                provider_name,
                redirect_to=f"{self.settings.site_url}{AUTH_CALLBACK_PATH}",
                query_params={"access_type": "offline", "prompt": "consent"},
            )
        except ProviderError as e:
            logger.error(f"OAuth sign in with {provider_name} failed: {e.code} {e.message}")
            return encode_redirect(MessageKind.ERROR, SIGN_UP_PATH, e.message)

        if not url:
            logger.error(f"OAuth sign in with {provider_name} returned no URL")
            return encode_redirect(MessageKind.ERROR, SIGN_UP_PATH, "Could not start sign in")

        return redirect_to(url)

    async def forgot_password(
        self,
        email: Optional[str],
        origin: Optional[str] = None,
        callback_url: Optional[str] = None
    ) -> AuthActionResult:
        """Send a reset link. Provider details are logged, never shown."""
        if not email:
            return encode_redirect(MessageKind.ERROR, FORGOT_PASSWORD_PATH, "Email is required")

        try:
            await self.provider.reset_password_for_email(
                email,
                redirect_to=f"{self._origin(origin)}{AUTH_CALLBACK_PATH}?redirect_to={RESET_PASSWORD_PATH}",
            )
        except ProviderError as e:
            logger.error(f"Password reset request failed: {e.code} {e.message}")
            audit.log_auth_event("forgot_password", "error", email, {"code": e.code})
            return encode_redirect(MessageKind.ERROR, FORGOT_PASSWORD_PATH, "Could not reset password")

        audit.log_auth_event("forgot_password", "success", email)

        if callback_url:
            return redirect_to(callback_url)

        return encode_redirect(
            MessageKind.SUCCESS,
            FORGOT_PASSWORD_PATH,
            "Check your email for a link to reset your password."
        )

    async def reset_password(self, password: Optional[str], confirm_password: Optional[str]) -> AuthActionResult:
        """Set a new password for the signed-in user"""
        if not password or not confirm_password:
            return encode_redirect(
                MessageKind.ERROR, RESET_PASSWORD_PATH, "Password and confirm password are required"
            )

        if password != confirm_password:
            return encode_redirect(MessageKind.ERROR, RESET_PASSWORD_PATH, "Passwords do not match")

        try:
            await self.provider.update_password(password)
        except ProviderError as e:
            logger.error(f"Password update failed: {e.code} {e.message}")
            audit.log_auth_event("reset_password", "error", details={"code": e.code})
            return encode_redirect(MessageKind.ERROR, RESET_PASSWORD_PATH, "Password update failed")

        audit.log_auth_event("reset_password", "success")
        return encode_redirect(MessageKind.SUCCESS, RESET_PASSWORD_PATH, "Password updated")

    async def sign_out(self) -> AuthActionResult:
        """End the session. Always lands on sign-in."""
        try:
            await self.provider.sign_out()
        except ProviderError as e:
            logger.warning(f"Provider sign out failed, redirecting anyway: {e}")
        finally:
            # local session cookies are dropped even when the provider call fails
            self.provider.storage.clear_session()

        audit.log_auth_event("sign_out", "success")
        return redirect_to(SIGN_IN_PATH)

    async def exchange_code(self, code: Optional[str], next_path: Optional[str] = None) -> AuthActionResult:
        """Finish an email-link or OAuth flow by trading the code for a session"""
        if not code:
            return encode_redirect(MessageKind.ERROR, SIGN_IN_PATH, "Missing authorization code")

        try:
            await self.provider.exchange_code_for_session(code)
        except ProviderError as e:
            logger.error(f"Code exchange failed: {e.code} {e.message}")
            return encode_redirect(MessageKind.ERROR, SIGN_IN_PATH, e.message)

        if is_safe_relative_path(next_path):
            return redirect_to(next_path)
        return redirect_to(DASHBOARD_PATH)
