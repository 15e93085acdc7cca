"""
Remote score backend (Cloudinary).

Two sequential calls: an unsigned upload that yields a ``public_id``, then an
Admin API lookup of that resource with ``colors=true``. Either call failing
aborts the extraction; nothing is retried here.
"""
import math
from typing import Any, List, Optional

import requests

from palette_service.config import config as default_config
from palette_service.utils.logging import get_logger

from ..errors import MalformedBackendResponse, UpstreamFailure
from ..models import BackendKind, PaletteRequestConfig, RawRemoteSwatch
from .base import PaletteBackend, require_hex

logger = get_logger()


class RemoteScoreBackend(PaletteBackend):
    """Adapter for Cloudinary's color scoring."""

    kind = BackendKind.REMOTE

    def __init__(self, cloud_name: Optional[str] = None, api_key: Optional[str] = None,
                 api_secret: Optional[str] = None, upload_preset: Optional[str] = None,
                 api_base: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.cloud_name = cloud_name if cloud_name is not None else default_config.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key if api_key is not None else default_config.CLOUDINARY_API_KEY
        self.api_secret = api_secret if api_secret is not None else default_config.CLOUDINARY_API_SECRET
        self.upload_preset = upload_preset or default_config.CLOUDINARY_UPLOAD_PRESET
        self.api_base = (api_base or default_config.CLOUDINARY_API_BASE).rstrip("/")
        self.timeout = timeout or default_config.CLOUDINARY_TIMEOUT_S
        # Module-level requests calls by default; a Session is only injected by callers that own it.
        self.http = session if session is not None else requests

    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @property
    def upload_url(self) -> str:
        return f"{self.api_base}/{self.cloud_name}/image/upload"

    def resource_url(self, public_id: str) -> str:
        return f"{self.api_base}/{self.cloud_name}/resources/image/upload/{public_id}"

    def extract(self, image_bytes: bytes, config: PaletteRequestConfig) -> List[Optional[RawRemoteSwatch]]:
        # quality / max_color_count do not apply to the remote scorer
        if not self.is_configured():
            raise UpstreamFailure(
                "Cloudinary credentials are not configured",
                status_code=503,
                stage="config"
            )

        public_id = self.upload(image_bytes)
        return self.fetch_colors(public_id)

    def upload(self, image_bytes: bytes) -> str:
        """Upload the image and return its opaque ``public_id``."""
        try:
            response = self.http.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset},
                files={"file": ("image", image_bytes)},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.bind(error=str(e)).error("Cloudinary upload request failed")
            raise UpstreamFailure("Cloudinary upload failed", details=str(e), stage="upload") from e

        if not response.ok:
            logger.bind(status=response.status_code, body=response.text).error("Cloudinary upload error")
            raise UpstreamFailure(
                "Cloudinary upload failed",
                details=response.text,
                status_code=response.status_code,
                stage="upload"
            )

        payload = self._json(response, "upload")
        public_id = payload.get("public_id") if isinstance(payload, dict) else None
        if not isinstance(public_id, str) or not public_id:
            raise MalformedBackendResponse(
                "Cloudinary upload response has no public_id",
                details=response.text
            )

        logger.bind(public_id=public_id).debug("Cloudinary upload complete")
        return public_id

    def fetch_colors(self, public_id: str) -> List[Optional[RawRemoteSwatch]]:
        """Query the uploaded resource for its scored colors."""
        try:
            response = self.http.get(
                self.resource_url(public_id),
                params={"colors": "true"},
                auth=(self.api_key, self.api_secret),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.bind(error=str(e)).error("Cloudinary palette request failed")
            raise UpstreamFailure("Failed to fetch color palette", details=str(e), stage="metadata") from e

        if not response.ok:
            logger.bind(status=response.status_code, body=response.text).error("Cloudinary palette error")
            raise UpstreamFailure(
                "Failed to fetch color palette",
                details=response.text,
                status_code=response.status_code,
                stage="metadata"
            )

        payload = self._json(response, "metadata")
        if not isinstance(payload, dict) or not isinstance(payload.get("colors"), list):
            raise MalformedBackendResponse(
                "Cloudinary resource response has no colors list",
                details=response.text
            )

        return [self._narrow(entry) for entry in payload["colors"]]

    @staticmethod
    def _json(response: requests.Response, stage: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MalformedBackendResponse(
                f"Cloudinary {stage} response is not JSON",
                details=response.text
            ) from e

    @staticmethod
    def _narrow(entry: Any) -> Optional[RawRemoteSwatch]:
        """``["#RRGGBB", score]`` -> ``RawRemoteSwatch``; ``null`` stays ``None``."""
        if entry is None:
            return None
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise MalformedBackendResponse("Unexpected Cloudinary color entry", details=repr(entry))

        hex_code, score = entry
        if isinstance(score, bool) or not isinstance(score, (int, float)) \
                or not math.isfinite(score) or score < 0:
            raise MalformedBackendResponse("Invalid Cloudinary color score", details=repr(entry))

        return RawRemoteSwatch(hex=require_hex(hex_code, "remote"), score=float(score))
