"""
Authentication Routes
Form actions for sign-up, sign-in, password reset, sign-out and OAuth
"""

from fastapi import APIRouter, BackgroundTasks, Form, Header, Query
from fastapi.responses import RedirectResponse
from typing import Annotated, Optional
import logging

from auth_portal.config import Settings
from auth_portal.models.messages import AuthActionResult
from auth_portal.services.auth_service import AUTH_CALLBACK_PATH
from auth_portal.utils.dependencies import AuthProviderDep, AuthServiceDep, SettingsDep
from auth_portal.utils.redirects import to_redirect_response
from auth_portal.utils.supabase_client import AuthProvider

logger = logging.getLogger(__name__)

router = APIRouter()

FormField = Annotated[Optional[str], Form()]


def _respond(result: AuthActionResult, provider: AuthProvider, settings: Settings) -> RedirectResponse:
    """Send the redirect along with any session cookie changes"""
    response = to_redirect_response(result)
    provider.apply_session_cookies(response, secure=settings.cookie_secure)
    return response


@router.post("/actions/sign-up", response_class=RedirectResponse)
async def sign_up(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep,
    email: FormField = None,
    password: FormField = None,
    origin: Annotated[Optional[str], Header()] = None
):
    """Register with email and password"""
    result = await auth_service.sign_up(email, password, origin)
    return _respond(result, provider, settings)


@router.post("/actions/sign-in", response_class=RedirectResponse)
async def sign_in(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep,
    background_tasks: BackgroundTasks,
    email: FormField = None,
    password: FormField = None
):
    """Sign in with email and password"""
    result = await auth_service.sign_in(email, password, background_tasks)
    return _respond(result, provider, settings)


@router.post("/actions/oauth/{provider_name}", response_class=RedirectResponse)
async def sign_in_with_oauth(
    provider_name: str,
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep
):
    """Start an OAuth sign-in (e.g. google)"""
    result = await auth_service.sign_in_with_oauth(provider_name)
    return _respond(result, provider, settings)


@router.post("/actions/forgot-password", response_class=RedirectResponse)
async def forgot_password(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep,
    email: FormField = None,
    callback_url: Annotated[Optional[str], Form(alias="callbackUrl")] = None,
    origin: Annotated[Optional[str], Header()] = None
):
    """Email a password reset link"""
    result = await auth_service.forgot_password(email, origin, callback_url)
    return _respond(result, provider, settings)


@router.post("/actions/reset-password", response_class=RedirectResponse)
async def reset_password(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep,
    password: FormField = None,
    confirm_password: Annotated[Optional[str], Form(alias="confirmPassword")] = None
):
    """Set a new password for the signed-in user"""
    result = await auth_service.reset_password(password, confirm_password)
    return _respond(result, provider, settings)


@router.post("/actions/sign-out", response_class=RedirectResponse)
async def sign_out(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep
):
    """Sign out and return to sign-in"""
    result = await auth_service.sign_out()
    return _respond(result, provider, settings)


@router.get(AUTH_CALLBACK_PATH, response_class=RedirectResponse)
async def auth_callback(
    auth_service: AuthServiceDep,
    provider: AuthProviderDep,
    settings: SettingsDep,
    code: Annotated[Optional[str], Query()] = None,
    redirect_to: Annotated[Optional[str], Query()] = None
):
    """Landing point for confirmation, reset and OAuth links"""
    result = await auth_service.exchange_code(code, redirect_to)
    return _respond(result, provider, settings)
