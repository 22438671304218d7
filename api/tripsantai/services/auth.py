"""
Auth Service - Session verification, admin checks, login lockout and MFA tickets

Sign-in itself is delegated to the hosted auth provider; this module only
proxies it and decides whether a verified user may act as an admin.
"""
from dataclasses import dataclass, field
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Any, Dict, Optional
import httpx
import logging
import secrets

from tripsantai.config import settings
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.utils.database import get_db
from tripsantai.utils.redis import CacheService, get_cache

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthProviderError(Exception):
    """Raised when the auth provider cannot be reached or fails"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class AdminUser:
    uid: str
    email: Optional[str]
    admin: Dict[str, Any] = field(default_factory=dict)

    @property
    def mfa_enabled(self) -> bool:
        return bool(self.admin.get("mfa_enabled") and self.admin.get("mfa_secret_enc"))


class AuthProviderClient:
    """GoTrue-style endpoints of the hosted auth provider"""

    def __init__(self, base_url: str, service_key: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.client = client

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """User for a session token, None when the token is rejected"""
        try:
            response = await self.client.get(
                f"{self.base_url}/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}", "apikey": self.service_key},
            )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"auth provider unreachable: {e}") from e
        if response.status_code in (401, 403):
            return None
        if not response.is_success:
            raise AuthProviderError("user lookup failed", response.status_code)
        return response.json()

    async def sign_in_with_password(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """Session payload on success, None on bad credentials"""
        try:
            response = await self.client.post(
                f"{self.base_url}/auth/v1/token",
                params={"grant_type": "password"},
                data={"email": email, "password": password},
                headers={"apikey": self.service_key, "Authorization": f"Bearer {self.service_key}"},
            )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"auth provider unreachable: {e}") from e
        if response.status_code in (400, 401, 403):
            return None
        if not response.is_success:
            raise AuthProviderError("sign-in failed", response.status_code)
        return response.json()


async def get_auth_provider(db: DataStoreClient = Depends(get_db)) -> AuthProviderClient:
    """
    Dependency that provides the auth provider client
    Usage: auth: AuthProviderClient = Depends(get_auth_provider)
    """
    return AuthProviderClient(settings.DATA_API_URL, settings.SERVICE_ROLE_KEY, db.http)


async def get_verified_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthProviderClient = Depends(get_auth_provider),
) -> Dict[str, Any]:
    """Any signed-in user (used before the admin row exists, e.g. MFA setup)"""
    token = credentials.credentials.strip() if credentials else ""
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user token")
    try:
        user = await auth.get_user(token)
    except AuthProviderError as e:
        logger.error(f"Token verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Auth provider unavailable")
    if not user or not user.get("id"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user token")
    return user


async def require_admin(
    user: Dict[str, Any] = Depends(get_verified_user),
    db: DataStoreClient = Depends(get_db),
) -> AdminUser:
    """
    Dependency guarding every admin endpoint
    Usage: admin: AdminUser = Depends(require_admin)
    """
    try:
        admin_row = await db.select_one("admins", {"auth_uid": user["id"]})
    except DataStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "Failed to check admin table", "detail": e.detail},
        )
    if not admin_row:
        logger.info(f"Non-admin user {user['id']} rejected")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an admin")
    return AdminUser(uid=user["id"], email=user.get("email"), admin=admin_row)


class LoginGuard:
    """
    Failed-login counter and temporary lockout per email address.
    """

    def __init__(self, cache: CacheService, threshold: int = None, lock_minutes: int = None):
        self.cache = cache
        self.threshold = threshold or settings.ADMIN_LOCK_THRESHOLD
        self.lock_seconds = (lock_minutes or settings.ADMIN_LOCK_MINUTES) * 60

    @staticmethod
    def _key(kind: str, email: str) -> str:
        return f"login:{kind}:{email.strip().lower()}"

    async def locked_for(self, email: str) -> int:
        """Seconds left on the lock, 0 when not locked"""
        remaining = await self.cache.ttl(self._key("locked", email))
        return max(remaining, 0)

    async def record_failure(self, email: str) -> int:
        attempts = await self.cache.incr_window(self._key("failed", email), self.lock_seconds)
        if attempts >= self.threshold:
            logger.warning(f"Admin login locked for {email} after {attempts} failed attempts")
            await self.cache.set(self._key("locked", email), attempts, ttl=self.lock_seconds)
            await self.cache.delete(self._key("failed", email))
        return attempts

    async def reset(self, email: str):
        await self.cache.delete(self._key("failed", email))
        await self.cache.delete(self._key("locked", email))


class MFATicketStore:
    """
    Sessions parked between the password step and the TOTP step.

    Tickets are single use: redeeming one deletes it atomically.
    """

    def __init__(self, cache: CacheService, ttl: int = None):
        self.cache = cache
        self.ttl = ttl or settings.MFA_TICKET_TTL

    async def issue(self, email: str, session: Dict[str, Any]) -> str:
        ticket = secrets.token_urlsafe(24)
        await self.cache.set(f"mfa:ticket:{ticket}", {"email": email, "session": session}, ttl=self.ttl)
        return ticket

    async def redeem(self, ticket: str) -> Optional[Dict[str, Any]]:
        return await self.cache.pop(f"mfa:ticket:{ticket}")


async def get_login_guard(cache: CacheService = Depends(get_cache)) -> LoginGuard:
    return LoginGuard(cache)


async def get_mfa_tickets(cache: CacheService = Depends(get_cache)) -> MFATicketStore:
    return MFATicketStore(cache)
