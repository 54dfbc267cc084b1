"""Lesson chat endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from lesson_assistant.api.deps import (
    get_chat_prompt,
    get_current_user,
    get_gateway,
    get_send_guard,
    get_session,
)
from lesson_assistant.api.schemas import (
    ChatHistoryResponse,
    ChatMessageResponse,
    ChatReplyResponse,
    ChatRequest,
)
from lesson_assistant.auth.context import UserContext
from lesson_assistant.chat.gateway import CompletionGateway
from lesson_assistant.chat.prompts import ChatPrompt
from lesson_assistant.chat.session import ChatSession, SendGuard
from lesson_assistant.errors import CompletionError, SendInProgressError
from lesson_assistant.logging_config import bind_log_context
from lesson_assistant.storage.repositories import (
    ChatMessageRepository,
    LessonRepository,
    TranscriptRepository,
)

logger = structlog.get_logger()

router = APIRouter(tags=["chat"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
UserDep = Annotated[UserContext, Depends(get_current_user)]
GatewayDep = Annotated[CompletionGateway, Depends(get_gateway)]
PromptDep = Annotated[ChatPrompt, Depends(get_chat_prompt)]
GuardDep = Annotated[SendGuard, Depends(get_send_guard)]


@router.post("/lessons/{lesson_id}/chat")
async def send_message(
    lesson_id: uuid.UUID,
    body: ChatRequest,
    user: UserDep,
    session: SessionDep,
    gateway: GatewayDep,
    prompt: PromptDep,
    guard: GuardDep,
) -> ChatReplyResponse:
    """Ask the assistant a question about the lesson.

    The question is stored before the model is called and stays in the
    history even when the call fails (502). A second question sent while
    the first is still unanswered is rejected with 409.
    """
    bind_log_context(lesson_id=str(lesson_id))
    lesson = await LessonRepository(session).get_by_id(lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")

    chat = ChatSession(
        user_id=user.user_id,
        lesson_id=lesson_id,
        messages=ChatMessageRepository(session, user.user_id),
        segments=TranscriptRepository(session),
        gateway=gateway,
        prompt=prompt,
        guard=guard,
    )
    try:
        reply = await chat.send(body.message)
    except SendInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except CompletionError as exc:
        # Keep the user's question.
        await session.commit()
        raise HTTPException(
            status_code=502, detail="The assistant is unavailable, try again"
        ) from exc

    await session.commit()
    return ChatReplyResponse(message=reply.message, citations=reply.citations)


@router.get("/lessons/{lesson_id}/chat")
async def get_history(
    lesson_id: uuid.UUID,
    user: UserDep,
    session: SessionDep,
) -> ChatHistoryResponse:
    """Chat history of the current user in the lesson, oldest first."""
    messages = await ChatMessageRepository(session, user.user_id).history(lesson_id)
    return ChatHistoryResponse(
        items=[ChatMessageResponse.model_validate(m) for m in messages]
    )
