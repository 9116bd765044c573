# repository/blob_repository.py
from typing import Optional
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from repository.namespaces import BLOBS


class BlobRepository:
    """
    Redis-backed byte storage for uploaded PDFs keyed by document_id.

    TTL is refreshed on every read so documents in active use stay alive.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(document_id: str) -> str:
        return f"{BLOBS}:{document_id}"

    async def put_pdf(self, document_id: str, data: bytes) -> None:
        r = await self._client()
        await r.set(self._key(document_id), data, ex=self._ttl)

    async def get_pdf(self, document_id: str) -> Optional[bytes]:
        r = await self._client()
        raw = await r.get(self._key(document_id))
        if raw is None:
            return None
        await r.expire(self._key(document_id), self._ttl)
        return raw

    async def delete(self, document_id: str) -> int:
        r = await self._client()
        return int(await r.delete(self._key(document_id)))
