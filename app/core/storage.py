import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import requests

from app.core.config import settings
from app.core.errors import LedgerWriteError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/heic",
    "image/heif",
]

ALLOWED_DOCUMENT_TYPES = [
    "application/pdf",
]

ALLOWED_LEASE_DOCUMENT_TYPES = ALLOWED_IMAGE_TYPES + ALLOWED_DOCUMENT_TYPES


@dataclass(frozen=True)
class FileMetadata:
    storage_id: str
    content_type: Optional[str]
    size: int


class FileStore:
    """Thin client over Supabase Storage; only reads object metadata."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        bucket: Optional[str] = None,
        service_key: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.service_key = service_key or settings.SUPABASE_SERVICE_KEY
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES

    def _headers(self) -> dict:
        if not self.service_key:
            return {}
        return {"Authorization": f"Bearer {self.service_key}", "apikey": self.service_key}

    def get_metadata(self, storage_id: str) -> Optional[FileMetadata]:
        """HEAD the stored object. Returns None when it does not exist."""
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{storage_id}"
        try:
            response = requests.head(url, headers=self._headers(), timeout=10)
        except requests.RequestException as e:
            logger.exception("Storage lookup failed for %s", storage_id)
            raise LedgerWriteError("File storage unavailable") from e

        if response.status_code in (400, 404):
            return None
        if response.status_code >= 400:
            logger.error("Storage returned %s for %s", response.status_code, storage_id)
            raise LedgerWriteError("File storage unavailable")

        content_type = response.headers.get("Content-Type")
        if content_type:
            content_type = content_type.split(";")[0].strip()
        return FileMetadata(
            storage_id=storage_id,
            content_type=content_type,
            size=int(response.headers.get("Content-Length") or 0),
        )

    def validate(self, storage_id: str, allowed_types: Iterable[str]) -> FileMetadata:
        """
        Check an uploaded file exists, fits the size limit and has an allowed type.

        Raises:
            ValidationError: naming the first check that failed
        """
        allowed = list(allowed_types)
        metadata = self.get_metadata(storage_id)
        if metadata is None:
            raise ValidationError(f"File not found in storage: {storage_id}")

        if metadata.size > self.max_bytes:
            raise ValidationError(
                f"File size {metadata.size / 1024 / 1024:.2f}MB exceeds limit of "
                f"{self.max_bytes / 1024 / 1024:.0f}MB"
            )

        if not metadata.content_type or metadata.content_type not in allowed:
            raise ValidationError(
                f"File type {metadata.content_type} is not allowed. Allowed: {', '.join(allowed)}"
            )
        return metadata
