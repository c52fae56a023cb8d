from __future__ import annotations

import gzip
import logging
from typing import Protocol

import redis.asyncio as redis
from pydantic import BaseModel

from quantum_jobs.errors import NotFound
from quantum_jobs.redis_client import get_redis

logger = logging.getLogger(__name__)

INPUT_BLOB_NAME = "inputData"


class BlobLocation(BaseModel):
    container_uri: str
    input_uri: str


class JobInputUploader(Protocol):
    async def upload_job_input(self, job_id: str, data: bytes) -> BlobLocation: ...


def compress_payload(data: bytes) -> bytes:
    return gzip.compress(data, compresslevel=1)


def container_name(job_id: str) -> str:
    return f"job-{job_id}"


class RedisBlobStore:
    """Redis-backed container/blob store for job inputs.

    Blobs are addressed as ``<base_uri>/<container>/<blob>``.
    """

    def __init__(
        self, client: redis.Redis | None = None, base_uri: str = "redis://blobs"
    ) -> None:
        self.redis = client or get_redis()
        self.base_uri = base_uri.rstrip("/")
        self.key_prefix = "blob:"

    def _key(self, container: str, blob: str) -> str:
        return f"{self.key_prefix}{container}/{blob}"

    def _split(self, uri: str) -> tuple[str, str]:
        prefix = self.base_uri + "/"
        if not uri.startswith(prefix):
            raise NotFound(f"blob {uri} is not in this store")
        container, _, blob = uri[len(prefix):].partition("/")
        if not container or not blob:
            raise NotFound(f"blob {uri} is not in this store")
        return container, blob

    async def put(self, container: str, blob: str, data: bytes) -> str:
        await self.redis.set(self._key(container, blob), data.hex())
        return f"{self.base_uri}/{container}/{blob}"

    async def get(self, container: str, blob: str) -> bytes:
        raw = await self.redis.get(self._key(container, blob))
        if raw is None:
            raise NotFound(f"blob {container}/{blob} not found")
        return bytes.fromhex(raw if isinstance(raw, str) else raw.decode())

    async def download(self, uri: str) -> bytes:
        return await self.get(*self._split(uri))

    async def upload_job_input(self, job_id: str, data: bytes) -> BlobLocation:
        """Compress ``data`` and store it as the input blob of ``job_id``."""
        container = container_name(job_id)
        input_uri = await self.put(container, INPUT_BLOB_NAME, compress_payload(data))
        logger.info("uploaded %d bytes of input for job %s", len(data), job_id)
        return BlobLocation(
            container_uri=f"{self.base_uri}/{container}", input_uri=input_uri
        )
