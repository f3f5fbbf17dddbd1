"""
Supabase Storage adapter for work-order photo evidence.
"""

from __future__ import annotations

import secrets
import string
import time
from typing import Optional

from ot_tracker.database import DatabaseManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.stores.base import BlobStore, ImageUploadError

_SUFFIX_ALPHABET: str = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH: int = 7

MSG_UPLOAD_FAILED: str = "Error al subir la imagen"


def generate_evidence_path(prefix: str = "evidence", now_ms: Optional[int] = None) -> str:
    """Build a unique object path: ``<prefix>/<epoch-ms>_<7 chars [a-z0-9]>.jpg``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}/{now_ms}_{suffix}.jpg"


class SupabaseBlobStore(BlobStore):
    """Uploads payloads to one Supabase Storage bucket.

    Returns the object's public URL.  No retry: any failure surfaces as
    :class:`ImageUploadError`.
    """

    def __init__(self, db: DatabaseManager, bucket: str, logger: StructuredLogger) -> None:
        self._db: DatabaseManager = db
        self._bucket: str = bucket
        self._logger: StructuredLogger = logger

    def upload(self, path: str, payload: bytes, content_type: str) -> str:
        try:
            bucket = self._db.supabase.storage.from_(self._bucket)
            bucket.upload(
                path=path,
                file=payload,
                file_options={"content-type": content_type},
            )
            url: str = bucket.get_public_url(path)
        except Exception as exc:
            self._logger.error(
                "Upload of %s to bucket '%s' failed: %s", path, self._bucket, exc,
            )
            raise ImageUploadError(MSG_UPLOAD_FAILED) from exc

        self._logger.info(
            "Uploaded %d bytes to %s/%s", len(payload), self._bucket, path,
        )
        return url
