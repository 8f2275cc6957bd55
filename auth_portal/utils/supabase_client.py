"""
Supabase Client Configuration
Auth provider wrapper with cookie-backed sessions and an unconfigured fallback
"""

import asyncio
import base64
import logging
from typing import Any, Dict, Mapping, Optional

from starlette.responses import Response
from supabase import AuthError, Client, ClientOptions, PostgrestAPIError, create_client
from supabase_auth.constants import STORAGE_KEY

from auth_portal.config import Settings

logger = logging.getLogger(__name__)

SESSION_COOKIE_MAX_AGE = 400 * 24 * 60 * 60
MAX_CHUNK_SIZE = 3180
BASE64_PREFIX = "base64-"
UNCONFIGURED_CODE = "provider_unconfigured"


class ProviderError(Exception):
    """Auth provider reported a failure"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.code} {self.message}" if self.code else self.message


class CookieSessionStorage:
    """
    Storage adapter for the Supabase auth client backed by browser cookies.

    Reads come from the incoming request cookies; writes are buffered and
    applied to the outgoing response with `apply()`. Values are stored
    base64-encoded and split into `<key>.<n>` chunks when too large for a
    single cookie.
    """

    def __init__(self, cookies: Optional[Mapping[str, str]] = None, storage_key: str = STORAGE_KEY):
        self.storage_key = storage_key
        self._cookies: Dict[str, str] = dict(cookies or {})
        self._changes: Dict[str, Optional[str]] = {}

    def get_item(self, key: str) -> Optional[str]:
        if key in self._changes:
            return self._changes[key]

        raw = self._cookies.get(key)
        if raw is None:
            chunks = []
            index = 0
            while f"{key}.{index}" in self._cookies:
                chunks.append(self._cookies[f"{key}.{index}"])
                index += 1
            if not chunks:
                return None
            raw = "".join(chunks)

        return self._decode(raw)

    def set_item(self, key: str, value: str) -> None:
        self._changes[key] = value

    def remove_item(self, key: str) -> None:
        self._changes[key] = None

    def clear_session(self) -> None:
        """Drop the stored session and any pending PKCE code verifier"""
        for key in (self.storage_key, f"{self.storage_key}-code-verifier"):
            self._changes[key] = None

    @property
    def has_changes(self) -> bool:
        return bool(self._changes)

    @staticmethod
    def _encode(value: str) -> str:
        return BASE64_PREFIX + base64.urlsafe_b64encode(value.encode('utf-8')).decode('ascii').rstrip('=')

    @staticmethod
    def _decode(raw: str) -> Optional[str]:
        if not raw.startswith(BASE64_PREFIX):
            return raw
        data = raw[len(BASE64_PREFIX):]
        data += '=' * (-len(data) % 4)
        try:
            return base64.urlsafe_b64decode(data.encode('ascii')).decode('utf-8')
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding undecodable session cookie: {e}")
            return None

    def _existing_names(self, key: str):
        return [name for name in self._cookies if name == key or name.startswith(f"{key}.")]

    def apply(self, response: Response, secure: bool = False) -> None:
        """Write buffered session changes onto `response` as cookies"""
        options = {"path": "/", "httponly": True, "secure": secure, "samesite": "lax"}

        for key, value in self._changes.items():
            stale = set(self._existing_names(key))

            if value is not None:
                encoded = self._encode(value)
                if len(encoded) <= MAX_CHUNK_SIZE:
                    names = {key: encoded}
                else:
                    names = {
                        f"{key}.{i}": encoded[start:start + MAX_CHUNK_SIZE]
                        for i, start in enumerate(range(0, len(encoded), MAX_CHUNK_SIZE))
                    }
                for name, chunk in names.items():
                    response.set_cookie(key=name, value=chunk, max_age=SESSION_COOKIE_MAX_AGE, **options)
                stale -= set(names)

            for name in stale:
                response.delete_cookie(key=name, **options)


class AuthProvider:
    """Async facade over the auth provider used by the action handlers"""

    def __init__(self, storage: Optional[CookieSessionStorage] = None):
        self.storage = storage or CookieSessionStorage()

    def is_available(self) -> bool:
        raise NotImplementedError

    async def sign_up(self, email: str, password: str, email_redirect_to: str) -> None:
        raise NotImplementedError

    async def sign_in_with_password(self, email: str, password: str) -> None:
        raise NotImplementedError

    async def sign_in_with_oauth(self, provider: str, redirect_to: str, query_params: Dict[str, str]) -> Optional[str]:
        raise NotImplementedError

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        raise NotImplementedError

    async def update_password(self, password: str) -> None:
        raise NotImplementedError

    async def exchange_code_for_session(self, code: str) -> None:
        raise NotImplementedError

    async def sign_out(self) -> None:
        raise NotImplementedError

    async def initialize_account(self) -> Any:
        raise NotImplementedError

    def apply_session_cookies(self, response: Response, secure: bool = False) -> None:
        if self.storage.has_changes:
            self.storage.apply(response, secure=secure)


class SupabaseAuthProvider(AuthProvider):
    """Supabase auth client wrapper"""

    def __init__(self, client: Client, storage: Optional[CookieSessionStorage] = None):
        super().__init__(storage)
        self.client = client

    def is_available(self) -> bool:
        return True

    @staticmethod
    async def _call(func, *args):
        """Run a blocking SDK call off the event loop, normalising errors"""
        try:
            return await asyncio.to_thread(func, *args)
        except AuthError as e:
            raise ProviderError(e.message, getattr(e, 'code', None)) from e
        except PostgrestAPIError as e:
            raise ProviderError(e.message or str(e), e.code) from e

    async def sign_up(self, email: str, password: str, email_redirect_to: str) -> None:
        await self._call(self.client.auth.sign_up, {
            "email": email,
            "password": password,
            "options": {"email_redirect_to": email_redirect_to},
        })
        logger.info(f"Sign-up requested for: {email}")

    async def sign_in_with_password(self, email: str, password: str) -> None:
        response = await self._call(self.client.auth.sign_in_with_password, {
            "email": email,
            "password": password,
        })
        if not response.session:
            raise ProviderError("Invalid login credentials", "invalid_credentials")
        logger.info(f"Signed in: {email}")

    async def sign_in_with_oauth(self, provider: str, redirect_to: str, query_params: Dict[str, str]) -> Optional[str]:
        response = await self._call(self.client.auth.sign_in_with_oauth, {
            "provider": provider,
            "options": {"redirect_to": redirect_to, "query_params": query_params},
        })
        return response.url

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._call(self.client.auth.reset_password_for_email, email, {"redirect_to": redirect_to})
        logger.info(f"Password reset email requested for: {email}")

    async def update_password(self, password: str) -> None:
        await self._call(self.client.auth.update_user, {"password": password})

    async def exchange_code_for_session(self, code: str) -> None:
        await self._call(self.client.auth.exchange_code_for_session, {"auth_code": code})

    async def sign_out(self) -> None:
        await self._call(self.client.auth.sign_out)

    async def initialize_account(self) -> Any:
        response = await self._call(self.client.rpc("initialize_user_account").execute)
        return response.data


class UnconfiguredAuthProvider(AuthProvider):
    """
    Stand-in used when Supabase credentials are absent.

    Neutral operations succeed with empty results; anything that needs the
    provider fails with a ProviderError so handlers can report it.
    """

    MESSAGE = "Authentication service is not configured"

    def is_available(self) -> bool:
        return False

    def _unavailable(self):
        raise ProviderError(self.MESSAGE, UNCONFIGURED_CODE)

    async def sign_up(self, email: str, password: str, email_redirect_to: str) -> None:
        self._unavailable()

    async def sign_in_with_password(self, email: str, password: str) -> None:
        self._unavailable()

    async def sign_in_with_oauth(self, provider: str, redirect_to: str, query_params: Dict[str, str]) -> Optional[str]:
        self._unavailable()

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        self._unavailable()

    async def update_password(self, password: str) -> None:
        self._unavailable()

    async def exchange_code_for_session(self, code: str) -> None:
        self._unavailable()

    async def sign_out(self) -> None:
        return None

    async def initialize_account(self) -> Any:
        return None


def create_auth_provider(settings: Settings, cookies: Optional[Mapping[str, str]] = None) -> AuthProvider:
    """
    Build a request-scoped auth provider.

    Returns an UnconfiguredAuthProvider when credentials are missing or the
    client cannot be created, so the process keeps serving.
    """
    storage = CookieSessionStorage(cookies)

    if not settings.supabase_configured:
        logger.warning("Supabase credentials not found in environment, using unconfigured provider")
        return UnconfiguredAuthProvider(storage)

    try:
        client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=ClientOptions(
                storage=storage,
                flow_type="pkce",
                auto_refresh_token=False,
                persist_session=True,
            ),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return UnconfiguredAuthProvider(storage)

    return SupabaseAuthProvider(client, storage)
