# controller/chat_controller.py
from fastapi import APIRouter, Depends
from service.chat_service import ChatService
from model.api import (
    ChatRequest,
    ChatResponse,
    InjectCitationsRequest,
    InjectCitationsResponse,
    PdfSearchRequest,
    PdfSearchResponse,
)
from util.constants import InternalURIs
from controller.controller_dependencies import get_chat_service, rate_limit

chat_router = APIRouter(dependencies=[Depends(rate_limit)])


@chat_router.post(InternalURIs.CHAT, response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return await service.ask(payload.documentId, payload.message, payload.apiKey)


@chat_router.post(InternalURIs.PDF_SEARCH, response_model=PdfSearchResponse)
async def search_pdf(
    payload: PdfSearchRequest,
    service: ChatService = Depends(get_chat_service),
) -> PdfSearchResponse:
    return await service.search(payload.documentId, payload.excerpts)


@chat_router.post(InternalURIs.INJECT_CITATIONS, response_model=InjectCitationsResponse)
async def inject_citations(payload: InjectCitationsRequest) -> InjectCitationsResponse:
    return ChatService.inject(payload.answer, payload.excerpts, payload.pageMappings)
