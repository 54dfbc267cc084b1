"""FastAPI dependency injection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lesson_assistant.auth.context import UserContext
from lesson_assistant.auth.keys import hash_api_key
from lesson_assistant.chat.gateway import CompletionGateway
from lesson_assistant.chat.prompts import ChatPrompt
from lesson_assistant.chat.session import SendGuard
from lesson_assistant.logging_config import bind_log_context
from lesson_assistant.storage.database import get_session
from lesson_assistant.storage.orm import APIKey, User

__all__ = [
    "get_chat_prompt",
    "get_current_user",
    "get_gateway",
    "get_send_guard",
    "get_session",
]

api_key_header = APIKeyHeader(name="X-API-Key")


_get_session = Depends(get_session)


async def get_current_user(
    api_key: str = Security(api_key_header),
    session: AsyncSession = _get_session,
) -> UserContext:
    """Authenticate request via API key, return user context.

    Raises:
        HTTPException 401: missing, invalid, inactive, or expired key.
    """
    key_hash = hash_api_key(api_key)

    stmt = (
        select(APIKey)
        .join(User, APIKey.user_id == User.id)
        .where(
            APIKey.key_hash == key_hash,
            APIKey.is_active.is_(True),
            User.is_active.is_(True),
        )
        .options(selectinload(APIKey.user))
    )
    result = await session.execute(stmt)
    api_key_record = result.scalar_one_or_none()

    if api_key_record is None:
        raise HTTPException(status_code=401, detail="Invalid API key")

    if (
        api_key_record.expires_at is not None
        and api_key_record.expires_at < datetime.now(UTC)
    ):
        raise HTTPException(status_code=401, detail="API key expired")

    bind_log_context(user_id=str(api_key_record.user_id))
    return UserContext(
        user_id=api_key_record.user_id,
        user_name=api_key_record.user.name,
        key_prefix=api_key_record.key_prefix,
    )


async def get_gateway(request: Request) -> CompletionGateway:
    """Retrieve the completion gateway from app state.

    Initialized during lifespan startup.
    """
    return cast(CompletionGateway, request.app.state.gateway)


async def get_chat_prompt(request: Request) -> ChatPrompt:
    return cast(ChatPrompt, request.app.state.chat_prompt)


async def get_send_guard(request: Request) -> SendGuard:
    """Process-wide SendGuard, shared by every chat request."""
    return cast(SendGuard, request.app.state.send_guard)
