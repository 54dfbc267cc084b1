"""Tests for POST/GET /lessons/{lesson_id}/chat."""

import uuid
from collections.abc import Iterator
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from lesson_assistant.api.app import app
from lesson_assistant.api.deps import get_chat_prompt, get_gateway, get_send_guard
from lesson_assistant.auth.context import UserContext
from lesson_assistant.chat.prompts import ChatPrompt
from lesson_assistant.chat.session import SendGuard
from lesson_assistant.errors import CompletionError
from lesson_assistant.storage.repositories import (
    ChatMessageRepository,
    LessonRepository,
    TranscriptRepository,
)
from lesson_assistant.transcript.segments import Segment

LESSON_ID = uuid.uuid4()
PROMPT = ChatPrompt(
    version="test",
    system_prompt="Lesson Transcript:\n{context}",
    fallback_answer="No answer.",
)
SEGMENTS = [
    Segment(
        id=uuid.uuid4(),
        lesson_id=LESSON_ID,
        start_time_ms=0,
        end_time_ms=7000,
        text="A",
        order=0,
    ),
    Segment(
        id=uuid.uuid4(),
        lesson_id=LESSON_ID,
        start_time_ms=7000,
        end_time_ms=12_000,
        text="B",
        order=1,
    ),
]


@pytest.fixture()
def gateway() -> AsyncMock:
    gw = AsyncMock()
    gw.complete = AsyncMock(return_value="See [00:00] and [00:07]")
    return gw


@pytest.fixture()
def guard() -> SendGuard:
    return SendGuard()


@pytest.fixture(autouse=True)
def _chat_deps(client: AsyncClient, gateway: AsyncMock, guard: SendGuard) -> None:
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_chat_prompt] = lambda: PROMPT
    app.dependency_overrides[get_send_guard] = lambda: guard


@pytest.fixture()
def append() -> Iterator[AsyncMock]:
    with (
        patch.object(
            LessonRepository,
            "get_by_id",
            new=AsyncMock(return_value=SimpleNamespace(id=LESSON_ID)),
        ),
        patch.object(
            TranscriptRepository,
            "list_for_lesson",
            new=AsyncMock(return_value=SEGMENTS),
        ),
        patch.object(ChatMessageRepository, "append", new=AsyncMock()) as mock_append,
    ):
        yield mock_append


class TestSendMessage:
    async def test_answer_with_citations(
        self, client: AsyncClient, append: AsyncMock, mock_session: AsyncMock
    ) -> None:
        response = await client.post(
            f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "What is this?"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "See [00:00] and [00:07]"
        assert [c["text"] for c in data["citations"]] == ["A", "B"]
        assert data["citations"][1]["segment_id"] == str(SEGMENTS[1].id)
        assert [c.kwargs["role"] for c in append.call_args_list] == [
            "user",
            "assistant",
        ]
        mock_session.commit.assert_awaited_once()

    async def test_context_sent_to_model(
        self, client: AsyncClient, append: AsyncMock, gateway: AsyncMock
    ) -> None:
        await client.post(f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "q"})

        system, question = gateway.complete.call_args.args[0]
        assert system.content == (
            "Lesson Transcript:\n[00:00-00:07] A\n[00:07-00:12] B"
        )
        assert question.content == "q"

    async def test_no_citations_is_null(
        self, client: AsyncClient, append: AsyncMock, gateway: AsyncMock
    ) -> None:
        gateway.complete.return_value = "Nothing cited here [99:00]."
        response = await client.post(
            f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "q"}
        )
        assert response.json()["citations"] is None

    async def test_empty_answer_replaced(
        self, client: AsyncClient, append: AsyncMock, gateway: AsyncMock
    ) -> None:
        gateway.complete.return_value = "   "
        response = await client.post(
            f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "q"}
        )
        assert response.json()["message"] == "No answer."

    async def test_completion_failure_keeps_question(
        self,
        client: AsyncClient,
        append: AsyncMock,
        gateway: AsyncMock,
        mock_session: AsyncMock,
    ) -> None:
        gateway.complete.side_effect = CompletionError("upstream down")
        response = await client.post(
            f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "q"}
        )

        assert response.status_code == 502
        append.assert_awaited_once()
        assert append.call_args.kwargs["role"] == "user"
        mock_session.commit.assert_awaited_once()

    async def test_concurrent_send_rejected(
        self,
        client: AsyncClient,
        append: AsyncMock,
        guard: SendGuard,
        user: UserContext,
    ) -> None:
        with guard.hold(user.user_id, LESSON_ID):
            response = await client.post(
                f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": "q"}
            )
        assert response.status_code == 409
        append.assert_not_awaited()

    async def test_lesson_not_found(self, client: AsyncClient) -> None:
        with patch.object(
            LessonRepository, "get_by_id", new=AsyncMock(return_value=None)
        ):
            response = await client.post(
                f"/api/v1/lessons/{uuid.uuid4()}/chat", json={"message": "q"}
            )
        assert response.status_code == 404

    @pytest.mark.parametrize("message", ["", "x" * 4001])
    async def test_message_length_validated(
        self, client: AsyncClient, message: str
    ) -> None:
        response = await client.post(
            f"/api/v1/lessons/{LESSON_ID}/chat", json={"message": message}
        )
        assert response.status_code == 422


class TestHistory:
    async def test_history_oldest_first(self, client: AsyncClient) -> None:
        now = datetime.now(UTC)
        rows = [
            SimpleNamespace(
                id=uuid.uuid4(),
                role="user",
                content="q",
                citations=None,
                created_at=now,
            ),
            SimpleNamespace(
                id=uuid.uuid4(),
                role="assistant",
                content="See [00:00]",
                citations=[
                    {
                        "timestamp": "00:00",
                        "text": "A",
                        "segment_id": str(SEGMENTS[0].id),
                    }
                ],
                created_at=now,
            ),
        ]
        with patch.object(
            ChatMessageRepository, "history", new=AsyncMock(return_value=rows)
        ):
            response = await client.get(f"/api/v1/lessons/{LESSON_ID}/chat")

        assert response.status_code == 200
        items = response.json()["items"]
        assert [i["role"] for i in items] == ["user", "assistant"]
        assert items[1]["citations"][0]["timestamp"] == "00:00"
