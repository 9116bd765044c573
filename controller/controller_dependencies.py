# controller/controller_dependencies.py
from fastapi import File, HTTPException, Request, UploadFile
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from repository.blob_repository import BlobRepository
from repository.chunk_repository import ChunkRepository
from repository.document_repository import DocumentRepository
from service.chat_service import ChatService
from service.document_service import DocumentService

rate_limit = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)


def get_document_service() -> DocumentService:
    return DocumentService(DocumentRepository(), BlobRepository(), ChunkRepository())


def get_chat_service() -> ChatService:
    return ChatService(DocumentRepository(), BlobRepository(), ChunkRepository())


async def enforce_max_upload_size(
    request: Request, file: UploadFile = File(...)
) -> UploadFile:
    # Fast pre-check via Content-Length if present
    MAX_BYTES = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and int(cl) > MAX_BYTES:
        # JSON envelope for 413
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Hard cap while reading initial bytes (works even if no Content-Length)
    blob = await file.read(MAX_BYTES + 1)
    if len(blob) > MAX_BYTES:
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Reset so downstream can re-read file stream
    await file.seek(0)
    return file
