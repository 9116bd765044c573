# repository/document_repository.py
from datetime import datetime, timezone
from typing import Final, List, Optional
from uuid import uuid4
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from model.document import StoredDocument
from repository.namespaces import DOCUMENT_INDEX, DOCUMENTS
from util import functions
import logging

logger = logging.getLogger(__name__)

KEY_PREFIX: Final[str] = DOCUMENTS


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRepository:
    """
    Flow:
    - Metadata lives in one hash per document with a sliding TTL.
    - DOCUMENT_INDEX holds every id ever created; listing drops ids whose
      hash has expired.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(document_id: str) -> str:
        return f"{KEY_PREFIX}:{document_id}"

    # ---------------- Core CRUD ----------------

    async def create(
        self, *, filename: str, page_count: int, size_bytes: int
    ) -> StoredDocument:
        now = _now()
        doc = StoredDocument(
            id=str(uuid4()),
            title=functions.title_from_filename(filename),
            filename=filename,
            pageCount=page_count,
            sizeBytes=size_bytes,
            uploadedAt=now,
            lastAccessedAt=now,
        )
        await self.put(doc)
        return doc

    async def put(self, doc: StoredDocument) -> None:
        r = await self._client()
        mapping = {
            "id": doc.id,
            "title": doc.title,
            "filename": doc.filename,
            "page_count": str(doc.pageCount),
            "size_bytes": str(doc.sizeBytes),
            "uploaded_at": doc.uploadedAt.isoformat(),
            "last_accessed_at": (doc.lastAccessedAt or doc.uploadedAt).isoformat(),
        }
        await r.hset(self._key(doc.id), mapping=mapping)
        await r.expire(self._key(doc.id), self._ttl)
        await r.sadd(DOCUMENT_INDEX, doc.id)

    async def _load(self, r: Redis, document_id: str) -> Optional[StoredDocument]:
        h = await r.hgetall(self._key(document_id))
        if not h:
            return None

        def _s(key: str, default: str = "") -> str:
            v = h.get(key.encode("utf-8"), h.get(key))
            if v is None:
                return default
            return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)

        try:
            uploaded = datetime.fromisoformat(_s("uploaded_at"))
            accessed = _s("last_accessed_at")
            filename = _s("filename")
            return StoredDocument(
                id=_s("id"),
                title=_s("title") or functions.title_from_filename(filename),
                filename=filename,
                pageCount=int(_s("page_count", "0") or 0),
                sizeBytes=int(_s("size_bytes", "0") or 0),
                uploadedAt=uploaded,
                lastAccessedAt=datetime.fromisoformat(accessed) if accessed else uploaded,
            )
        except ValueError:
            logger.warning("document.metadata.corrupt document=%s", document_id)
            return None

    async def get(self, document_id: str) -> Optional[StoredDocument]:
        if not document_id:
            return None
        r = await self._client()
        doc = await self._load(r, document_id)
        if doc is not None:
            await r.expire(self._key(document_id), self._ttl)
        return doc

    async def list_all(self, search: Optional[str] = None) -> List[StoredDocument]:
        """
        All live documents, most recently accessed first. `search` filters
        on a case-insensitive title substring. Listing does not refresh TTLs.
        """
        r = await self._client()
        ids = await r.smembers(DOCUMENT_INDEX)
        needle = (search or "").strip().lower()
        out: List[StoredDocument] = []
        stale: List[str] = []
        for raw in ids or []:
            document_id = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)
            doc = await self._load(r, document_id)
            if doc is None:
                stale.append(document_id)
                continue
            if needle and needle not in doc.title.lower():
                continue
            out.append(doc)
        if stale:
            await r.srem(DOCUMENT_INDEX, *stale)
            logger.info("document.index.pruned count=%d", len(stale))
        out.sort(key=lambda d: d.lastAccessedAt or d.uploadedAt, reverse=True)
        return out

    async def update(
        self,
        document_id: str,
        *,
        title: Optional[str] = None,
        page_count: Optional[int] = None,
    ) -> Optional[StoredDocument]:
        """Apply the given fields and bump lastAccessedAt. None if unknown."""
        doc = await self.get(document_id)
        if doc is None:
            return None
        if title:
            doc.title = title
        if page_count is not None:
            doc.pageCount = page_count
        doc.lastAccessedAt = _now()
        await self.put(doc)
        return doc

    async def delete(self, document_id: str) -> int:
        if not document_id:
            return 0
        r = await self._client()
        await r.srem(DOCUMENT_INDEX, document_id)
        return int(await r.delete(self._key(document_id)))
