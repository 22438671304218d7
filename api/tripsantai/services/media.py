"""
Media Service - Image asset lifecycle on the Cloudinary CDN
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse
import hashlib
import httpx
import logging
import re
import time

from tripsantai.config import settings

logger = logging.getLogger(__name__)

CLOUDINARY_API = "https://api.cloudinary.com/v1_1"

_VERSION_PREFIX = re.compile(r"^v\d+/")
_EXTENSION = re.compile(r"\.[^/.]+$")


def extract_public_id(url: Optional[str]) -> Optional[str]:
    """
    Public id from a delivery URL.

    https://res.cloudinary.com/<cloud>/image/upload/v123/folder/name.jpg -> folder/name
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parts = urlparse(url).path.split("/")
    except ValueError:
        return None
    if "upload" not in parts:
        return None
    remainder = "/".join(parts[parts.index("upload") + 1:])
    if not remainder:
        return None
    public_id = _EXTENSION.sub("", _VERSION_PREFIX.sub("", remainder))
    return public_id or None


@dataclass
class DestroyResult:
    deleted: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {"deleted": self.deleted, "notFound": self.not_found, "errors": self.errors}


class MediaService:
    """
    Deletes uploaded assets through the signed Cloudinary upload API.

    Failures are collected, never raised: a stale image on the CDN must not
    block the catalog write that triggered the cleanup.
    """

    def __init__(
        self,
        cloud_name: str = None,
        api_key: str = None,
        api_secret: str = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key if api_key is not None else settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.CLOUDINARY_API_SECRET
        self.client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: Dict[str, Any]) -> str:
        payload = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1(f"{payload}{self.api_secret}".encode("utf-8")).hexdigest()

    async def _destroy_one(self, client: httpx.AsyncClient, public_id: str) -> str:
        params = {"invalidate": "true", "public_id": public_id, "timestamp": int(time.time())}
        response = await client.post(
            f"{CLOUDINARY_API}/{self.cloud_name}/image/destroy",
            data={**params, "api_key": self.api_key, "signature": self.sign(params)},
            timeout=settings.HTTP_TIMEOUT,
        )
        response.raise_for_status()
        return response.json().get("result", "")

    async def destroy(self, public_ids: Iterable[Optional[str]]) -> DestroyResult:
        result = DestroyResult()
        targets = [pid for pid in public_ids if pid]
        if not targets:
            return result
        if not self.is_configured:
            logger.info("Skipping Cloudinary removal: credentials not configured")
            return result

        client = self.client or httpx.AsyncClient()
        try:
            for public_id in targets:
                try:
                    outcome = await self._destroy_one(client, public_id)
                except httpx.HTTPError as e:
                    logger.warning(f"Cloudinary destroy failed for {public_id}: {e}")
                    result.errors.append({"publicId": public_id, "message": str(e)})
                    continue
                if outcome == "ok":
                    result.deleted.append(public_id)
                elif outcome == "not found":
                    result.not_found.append(public_id)
                else:
                    result.errors.append({"publicId": public_id, "outcome": outcome})
        finally:
            if self.client is None:
                await client.aclose()

        logger.info(
            f"Cloudinary cleanup: {len(result.deleted)} deleted, "
            f"{len(result.not_found)} not found, {len(result.errors)} errors"
        )
        return result


async def get_media() -> MediaService:
    return MediaService()
