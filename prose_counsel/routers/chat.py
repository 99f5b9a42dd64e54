"""
Chat API
Legal guidance conversations, one thread per case plus a general thread.

GET  /api/chat             - general thread
GET  /api/chat/general     - general thread
GET  /api/chat/{case_id}   - case thread
POST /api/chat             - {content, caseId?} -> {userMessage, aiMessage}
"""

from typing import Optional

from fastapi import APIRouter, Depends

from prose_counsel.models.schemas import ChatExchangeResponse, ChatMessageResponse, ChatRequest
from prose_counsel.services.chat import ChatService, resolve_chat_context
from prose_counsel.services.legal_ai import LegalAIService, get_legal_ai
from prose_counsel.services.stores import Storage, get_storage

router = APIRouter(prefix="/api/chat", tags=["Chat"])


def get_chat_service(
    storage: Storage = Depends(get_storage),
    ai: LegalAIService = Depends(get_legal_ai),
) -> ChatService:
    return ChatService(storage, ai)


@router.get("", response_model=list[ChatMessageResponse])
@router.get("/{context_id}", response_model=list[ChatMessageResponse])
async def get_messages(
    context_id: Optional[str] = None,
    chat: ChatService = Depends(get_chat_service),
):
    """Messages of one thread, oldest first."""
    return await chat.history(resolve_chat_context(context_id))


@router.post("", response_model=ChatExchangeResponse, status_code=201)
async def send_message(request: ChatRequest, chat: ChatService = Depends(get_chat_service)):
    user_message, ai_message = await chat.send(request.content, resolve_chat_context(request.case_id))
    return ChatExchangeResponse(
        user_message=ChatMessageResponse.model_validate(user_message),
        ai_message=ChatMessageResponse.model_validate(ai_message),
    )
