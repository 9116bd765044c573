# repository/chunk_repository.py
import json
from typing import List, Sequence
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from core.entities import PdfChunk
from repository.namespaces import CHUNKS


class ChunkRepository:
    """
    Flow:
    - Store each document's page-tagged chunks as a Redis list (RPUSH) at upload.
    - Read them back for retrieval on every question.
    - TTL is refreshed on read so chunks live as long as the PDF bytes.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    def _key(document_id: str) -> str:
        return f"{CHUNKS}:{document_id}"

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    async def put_all(self, document_id: str, chunks: Sequence[PdfChunk]) -> None:
        r = await self._client()
        await r.delete(self._key(document_id))
        if not chunks:
            return
        payloads = [
            json.dumps(
                {"page": c.page, "paragraph": c.paragraph, "text": c.text},
                separators=(",", ":"),
            ).encode("utf-8")
            for c in chunks
        ]
        await r.rpush(self._key(document_id), *payloads)
        await r.expire(self._key(document_id), self._ttl)

    async def all(self, document_id: str) -> List[PdfChunk]:
        r = await self._client()
        vals = await r.lrange(self._key(document_id), 0, -1)
        out: List[PdfChunk] = []
        for raw in vals or []:
            try:
                obj = json.loads(raw)
                out.append(
                    PdfChunk(
                        page=int(obj["page"]),
                        paragraph=obj.get("paragraph"),
                        text=str(obj.get("text") or ""),
                    )
                )
            except (ValueError, KeyError, TypeError):
                # Skip malformed entries instead of failing the question
                continue
        if vals:
            await r.expire(self._key(document_id), self._ttl)
        return out

    async def clear(self, document_id: str) -> int:
        r = await self._client()
        return int(await r.delete(self._key(document_id)))
