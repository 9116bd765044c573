from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from service.document_service import DocumentService
from model.api import DocumentListResponse, UpdateDocumentRequest, UploadDocumentResponse
from model.document import StoredDocument
from util.constants import InternalURIs
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_document_service,
    rate_limit,
)

document_router = APIRouter(dependencies=[Depends(rate_limit)])


@document_router.post(
    InternalURIs.DOCUMENTS,
    response_model=UploadDocumentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_document(
    file: UploadFile = File(...),
    service: DocumentService = Depends(get_document_service),
) -> UploadDocumentResponse:
    return await service.upload(file)


@document_router.get(InternalURIs.DOCUMENTS, response_model=DocumentListResponse)
async def list_documents(
    search: Optional[str] = Query(default=None, max_length=200),
    service: DocumentService = Depends(get_document_service),
) -> DocumentListResponse:
    return await service.list_all(search)


@document_router.get(InternalURIs.DOCUMENT, response_model=StoredDocument)
async def get_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> StoredDocument:
    return await service.get(document_id)


@document_router.put(InternalURIs.DOCUMENT, response_model=StoredDocument)
async def update_document(
    document_id: str,
    payload: UpdateDocumentRequest,
    service: DocumentService = Depends(get_document_service),
) -> StoredDocument:
    return await service.update(document_id, payload)


@document_router.delete(
    InternalURIs.DOCUMENT, status_code=status.HTTP_204_NO_CONTENT
)
async def delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
) -> None:
    await service.delete(document_id)
