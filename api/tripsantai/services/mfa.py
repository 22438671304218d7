"""
MFA Service - TOTP secrets for admin accounts
"""
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from typing import Optional
import base64
import io
import logging
import os
import pyotp
import qrcode

from tripsantai.config import settings

logger = logging.getLogger(__name__)

IV_LENGTH = 12
TAG_LENGTH = 16


class MFAError(Exception):
    """Raised when MFA secrets cannot be encrypted or decrypted"""


def _encryption_key(key_b64: Optional[str] = None) -> bytes:
    raw = key_b64 if key_b64 is not None else settings.MFA_ENCRYPTION_KEY
    try:
        key = base64.b64decode(raw) if raw else b""
    except ValueError as e:
        raise MFAError("MFA_ENCRYPTION_KEY is not valid base64") from e
    if len(key) != 32:
        raise MFAError("MFA_ENCRYPTION_KEY must be set (base64 32-byte key)")
    return key


def encrypt_secret(plain: str, key_b64: Optional[str] = None) -> str:
    """AES-256-GCM; stored as base64(iv | tag | ciphertext)"""
    aes = AESGCM(_encryption_key(key_b64))
    iv = os.urandom(IV_LENGTH)
    sealed = aes.encrypt(iv, plain.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(iv + tag + ciphertext).decode("ascii")


def decrypt_secret(encoded: str, key_b64: Optional[str] = None) -> str:
    aes = AESGCM(_encryption_key(key_b64))
    try:
        data = base64.b64decode(encoded)
        iv = data[:IV_LENGTH]
        tag = data[IV_LENGTH:IV_LENGTH + TAG_LENGTH]
        ciphertext = data[IV_LENGTH + TAG_LENGTH:]
        return aes.decrypt(iv, ciphertext + tag, None).decode("utf-8")
    except (InvalidTag, ValueError) as e:
        raise MFAError("Decrypt failed") from e


def generate_secret() -> str:
    return pyotp.random_base32()


def provisioning_uri(secret: str, label: str, issuer: Optional[str] = None) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=label, issuer_name=issuer or settings.MFA_ISSUER)


def verify_code(secret: str, code: str) -> bool:
    """Accept the current code and one step either side for clock drift"""
    code = str(code or "").strip()
    if not code.isdigit():
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=1)


def qr_data_url(uri: str) -> str:
    """Render the otpauth URI as a PNG data URL for authenticator apps"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=3,
    )
    qr.add_data(uri)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
