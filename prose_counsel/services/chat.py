"""
Conversational legal guidance.

A thread is identified by an optional case id: None is the general
(case-independent) thread. resolve_chat_context() is the only place the
"general" path segment is understood.
"""

import logging
from typing import Any, Optional

from prose_counsel.core.errors import NotFound, ValidationError
from prose_counsel.models.models import Case, ChatMessage, ChatRole
from prose_counsel.services.legal_ai import LegalAIService
from prose_counsel.services.stores import Storage

logger = logging.getLogger(__name__)

GENERAL_CONTEXT = "general"


def resolve_chat_context(context_id: Optional[str]) -> Optional[str]:
    """Map an omitted, blank or "general" context to None; anything else is a case id."""
    if context_id is None:
        return None
    context_id = context_id.strip()
    if not context_id or context_id.lower() == GENERAL_CONTEXT:
        return None
    return context_id


def case_context(case: Case) -> dict[str, Any]:
    return {
        "title": case.title,
        "plaintiff": case.plaintiff,
        "defendant": case.defendant,
        "jurisdiction": case.jurisdiction,
        "description": case.description,
    }


class ChatService:
    def __init__(self, storage: Storage, ai: LegalAIService):
        self.storage = storage
        self.ai = ai

    async def history(self, case_id: Optional[str]) -> list[ChatMessage]:
        return await self.storage.chat_messages.list_for_context(case_id)

    async def send(self, content: Optional[str], case_id: Optional[str]) -> tuple[ChatMessage, ChatMessage]:
        """
        Persist a user turn, ask for guidance, persist the assistant turn.

        Returns (user_message, ai_message). If guidance fails the user turn
        stays saved and AnalysisUnavailable propagates.
        """
        if not content or not content.strip():
            raise ValidationError("Message content is required")

        case = None
        if case_id is not None:
            case = await self.storage.cases.get(case_id)
            if case is None:
                raise NotFound("Case not found", details={"caseId": case_id})

        user_message = await self.storage.chat_messages.create(
            case_id=case_id,
            role=ChatRole.user.value,
            content=content,
        )

        context = case_context(case) if case else None
        jurisdiction = case.jurisdiction if case else GENERAL_CONTEXT
        guidance = await self.ai.get_guidance(content, jurisdiction, context)

        ai_message = await self.storage.chat_messages.create(
            case_id=case_id,
            role=ChatRole.assistant.value,
            content=guidance.answer,
            sources=guidance.sources,
            message_metadata={"caseContext": context} if context else None,
        )
        logger.info("Chat turn answered (%s, %d sources)", case_id or GENERAL_CONTEXT, len(guidance.sources))
        return user_message, ai_message
