"""
Health Routes
Liveness and configuration status
"""

from fastapi import APIRouter

from auth_portal.utils.dependencies import AuthProviderDep, SettingsDep

router = APIRouter()


@router.get("/health")
async def health_check(settings: SettingsDep):
    """Service health check"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": settings.service_version
    }


@router.get("/health/config")
async def config_health_check(settings: SettingsDep, provider: AuthProviderDep):
    """Which external providers are usable"""
    auth_available = provider.is_available()
    return {
        "status": "healthy" if auth_available else "degraded",
        "auth_provider": "configured" if auth_available else "unconfigured",
        "payment_api": "configured" if settings.creem_configured else "unconfigured"
    }
