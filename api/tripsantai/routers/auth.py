"""
Admin Authentication Endpoints - Password login with lockout, TOTP second factor
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, Dict, Optional
import logging
import redis.asyncio as redis

from tripsantai.schemas.auth import LoginRequest, MfaLoginRequest, MfaSetupRequest, MfaConfirmRequest
from tripsantai.services import mfa
from tripsantai.services.auth import (
    AuthProviderClient,
    AuthProviderError,
    LoginGuard,
    MFATicketStore,
    get_auth_provider,
    get_login_guard,
    get_mfa_tickets,
    get_verified_user,
)
from tripsantai.services.data_store import DataStoreClient, DataStoreError
from tripsantai.utils.database import get_db, upstream_error

router = APIRouter()
logger = logging.getLogger(__name__)


async def _admin_by_email(db: DataStoreClient, email: str) -> Optional[Dict[str, Any]]:
    try:
        return await db.select_one("admins", {"email": email})
    except DataStoreError as e:
        raise upstream_error(e, "Failed to check admin table")


@router.post("/admin/login")
async def admin_login(
    credentials: LoginRequest,
    auth: AuthProviderClient = Depends(get_auth_provider),
    guard: LoginGuard = Depends(get_login_guard),
    tickets: MFATicketStore = Depends(get_mfa_tickets),
    db: DataStoreClient = Depends(get_db),
):
    """
    Proxy the password sign-in and track failed attempts.

    Admins with MFA enabled get a one-time ticket instead of the session;
    the session is released by /admin/login/mfa.
    """
    email = credentials.email.strip().lower()

    try:
        locked_for = await guard.locked_for(email)
    except redis.RedisError as e:
        logger.warning(f"Login lockout check skipped: {e}")
        locked_for = 0
    if locked_for > 0:
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail="Account temporarily locked",
            headers={"Retry-After": str(locked_for)},
        )

    try:
        session = await auth.sign_in_with_password(email, credentials.password)
    except AuthProviderError as e:
        logger.error(f"Admin login proxy failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Auth provider unavailable")

    if session is None:
        try:
            attempts = await guard.record_failure(email)
            logger.info(f"Failed admin login for {email} (attempt {attempts})")
        except redis.RedisError as e:
            logger.warning(f"Could not record failed login: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    try:
        await guard.reset(email)
    except redis.RedisError as e:
        logger.warning(f"Could not reset login counter: {e}")

    admin_row = await _admin_by_email(db, email)
    if admin_row and admin_row.get("mfa_enabled") and admin_row.get("mfa_secret_enc"):
        try:
            ticket = await tickets.issue(email, session)
        except redis.RedisError as e:
            logger.error(f"Could not park session for MFA: {e}")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="MFA temporarily unavailable")
        return {"mfaRequired": True, "ticket": ticket}

    logger.info(f"Admin login: {email}")
    return {"data": session}


@router.post("/admin/login/mfa")
async def admin_login_mfa(
    request: MfaLoginRequest,
    tickets: MFATicketStore = Depends(get_mfa_tickets),
    db: DataStoreClient = Depends(get_db),
):
    """
    Second step: exchange the ticket and a TOTP code for the session
    """
    try:
        parked = await tickets.redeem(request.ticket)
    except redis.RedisError as e:
        logger.error(f"MFA ticket lookup failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="MFA temporarily unavailable")
    if not parked:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired ticket")

    email = parked["email"]
    admin_row = await _admin_by_email(db, email)
    if not admin_row or not admin_row.get("mfa_enabled") or not admin_row.get("mfa_secret_enc"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="MFA not enabled")

    try:
        secret = mfa.decrypt_secret(admin_row["mfa_secret_enc"])
    except mfa.MFAError as e:
        logger.error(f"MFA secret for {email} unusable: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Decrypt failed")

    if not mfa.verify_code(secret, request.code):
        logger.info(f"Invalid MFA code for {email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    logger.info(f"Admin login (MFA): {email}")
    return {"data": parked["session"]}


@router.post("/admin/mfa/setup")
async def mfa_setup(
    request: Optional[MfaSetupRequest] = None,
    user: Dict[str, Any] = Depends(get_verified_user),
):
    """
    New TOTP secret for the signed-in user; nothing is stored until confirm
    """
    secret = mfa.generate_secret()
    label = (request.label if request and request.label else None) or user.get("email") or user["id"]
    uri = mfa.provisioning_uri(secret, label)
    return {"qrDataUrl": mfa.qr_data_url(uri), "secret": secret, "otpauthUrl": uri}


@router.post("/admin/mfa/confirm")
async def mfa_confirm(
    request: MfaConfirmRequest,
    user: Dict[str, Any] = Depends(get_verified_user),
    db: DataStoreClient = Depends(get_db),
):
    """
    Verify the first code from the authenticator app and enable MFA
    """
    if not mfa.verify_code(request.secret, request.code):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid code")

    try:
        encrypted = mfa.encrypt_secret(request.secret)
    except mfa.MFAError as e:
        logger.error(f"MFA encryption unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    patch = {
        "mfa_enabled": True,
        "mfa_secret_enc": encrypted,
        "mfa_provisioned_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        rows = await db.update("admins", {"auth_uid": user["id"]}, patch)
    except DataStoreError as e:
        raise upstream_error(e, "Failed to persist")
    if not rows:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an admin")

    logger.info(f"MFA enabled for admin {user['id']}")
    return {"ok": True}
