import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from supabase import AsyncClient

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    @abstractmethod
    async def upload(
        self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        """Store ``data`` under ``bucket/path`` and return a URL for it."""


class MemoryBlobStore(BlobStore):
    def __init__(self):
        self.blobs: Dict[Tuple[str, str], Tuple[bytes, Optional[str]]] = {}

    async def upload(
        self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        self.blobs[(bucket, path)] = (data, content_type)
        return f"memory://{bucket}/{path}"


class SupabaseBlobStore(BlobStore):
    def __init__(self, supabase_client: AsyncClient):
        self.client = supabase_client

    async def upload(
        self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        storage = self.client.storage.from_(bucket)
        await storage.upload(
            path,
            data,
            {"content-type": content_type or "application/octet-stream"},
        )
        logger.info(f"Uploaded {len(data)} bytes to {bucket}/{path}")
        return await storage.get_public_url(path)
