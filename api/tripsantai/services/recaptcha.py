"""
reCAPTCHA verification for public forms
"""
from typing import Optional
import httpx
import logging

from tripsantai.config import settings

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaVerifier:
    """
    Checks a client token against the siteverify endpoint.

    Verification runs only when both a secret is configured and the client
    sent a token. An unreachable verifier lets the request through.
    """

    def __init__(self, secret: str = None, client: Optional[httpx.AsyncClient] = None):
        self.secret = secret if secret is not None else settings.RECAPTCHA_SECRET
        self.client = client

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        if not token or not self.secret:
            return True

        data = {"secret": self.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        client = self.client or httpx.AsyncClient()
        try:
            response = await client.post(VERIFY_URL, data=data, timeout=settings.HTTP_TIMEOUT)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"reCAPTCHA verify failed: {e}")
            return True
        finally:
            if self.client is None:
                await client.aclose()

        if not result.get("success"):
            logger.info(f"reCAPTCHA rejected: {result.get('error-codes')}")
            return False
        return True


async def get_recaptcha() -> RecaptchaVerifier:
    return RecaptchaVerifier()
