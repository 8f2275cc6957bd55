"""
Pytest fixtures for auth portal tests
"""

import pytest
from typing import Any, Dict, List, Optional, Tuple

from auth_portal.config import Settings
from auth_portal.utils.supabase_client import STORAGE_KEY, AuthProvider, CookieSessionStorage, ProviderError

SESSION_KEY = STORAGE_KEY


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test."
    )


class FakeAuthProvider(AuthProvider):
    """In-memory auth provider that records calls and raises on demand"""

    def __init__(self, cookies: Optional[Dict[str, str]] = None):
        super().__init__(CookieSessionStorage(cookies))
        self.calls: List[Tuple[str, tuple]] = []
        self.errors: Dict[str, Exception] = {}
        self.oauth_url: Optional[str] = "https://accounts.example.com/o/oauth2/auth?client_id=abc"
        self.account_data: Any = {"customer_id": "cus_123"}

    def fail(self, method: str, error):
        """Make `method` raise; strings become ProviderErrors"""
        self.errors[method] = ProviderError(error) if isinstance(error, str) else error

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    async def _record(self, method: str, *args):
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def is_available(self) -> bool:
        return True

    async def sign_up(self, email, password, email_redirect_to):
        await self._record("sign_up", email, password, email_redirect_to)

    async def sign_in_with_password(self, email, password):
        await self._record("sign_in_with_password", email, password)
        self.storage.set_item(SESSION_KEY, '{"access_token": "access-123", "refresh_token": "refresh-123"}')

    async def sign_in_with_oauth(self, provider, redirect_to, query_params):
        await self._record("sign_in_with_oauth", provider, redirect_to, query_params)
        return self.oauth_url

    async def reset_password_for_email(self, email, redirect_to):
        await self._record("reset_password_for_email", email, redirect_to)

    async def update_password(self, password):
        await self._record("update_password", password)

    async def exchange_code_for_session(self, code):
        await self._record("exchange_code_for_session", code)
        self.storage.set_item(SESSION_KEY, '{"access_token": "access-456"}')

    async def sign_out(self):
        await self._record("sign_out")
        self.storage.remove_item(SESSION_KEY)

    async def initialize_account(self):
        await self._record("initialize_account")
        return self.account_data


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings"""
    return Settings(
        site_url="https://app.example.com/",
        supabase_url="https://testproject.supabase.co",
        supabase_anon_key="anon-key",
        creem_api_url="https://api.creem.test/v1",
        creem_api_key="creem-key",
        creem_success_url=None,
        environment="testing",
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings with no external providers"""
    return Settings(
        supabase_url="",
        supabase_anon_key="",
        creem_api_url="",
        creem_api_key="",
        environment="testing",
    )


@pytest.fixture
def fake_provider() -> FakeAuthProvider:
    return FakeAuthProvider()
