"""
FastAPI Dependencies
Settings, auth provider and payment client injection
"""

from fastapi import Depends, Request
from typing import Annotated
import logging

from auth_portal.config import Settings, get_settings
from auth_portal.services.auth_service import AuthService
from auth_portal.utils.creem_client import CreemClient
from auth_portal.utils.supabase_client import AuthProvider, create_auth_provider

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings injected into the app at startup"""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_auth_provider(request: Request, settings: SettingsDep) -> AuthProvider:
    """Request-scoped auth provider reading the session from cookies"""
    return create_auth_provider(settings, request.cookies)


AuthProviderDep = Annotated[AuthProvider, Depends(get_auth_provider)]


def get_auth_service(provider: AuthProviderDep, settings: SettingsDep) -> AuthService:
    return AuthService(provider, settings)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_creem_client(request: Request, settings: SettingsDep) -> CreemClient:
    """Shared payment client started in the lifespan"""
    client = getattr(request.app.state, "creem_client", None)
    if client is None:
        client = CreemClient.from_settings(settings)
    return client


CreemClientDep = Annotated[CreemClient, Depends(get_creem_client)]
