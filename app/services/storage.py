"""Object storage for uploaded CSVs and generated scenario images."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from supabase import Client

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):

    @abstractmethod
    def upload(self, key: str, body: bytes, content_type: str) -> str:
        """Store ``body`` under ``key`` and return its public URL."""


class SupabaseObjectStorage(ObjectStorage):
    """Stores objects in a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    def upload(self, key: str, body: bytes, content_type: str) -> str:
        bucket = self._client.storage.from_(self._bucket)
        bucket.upload(key, body, {"content-type": content_type, "upsert": "false"})
        logger.info(
            "object_uploaded",
            extra={"bucket": self._bucket, "key": key, "size": len(body)},
        )
        return bucket.get_public_url(key)
