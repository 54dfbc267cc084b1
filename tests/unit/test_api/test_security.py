"""API key authentication and CORS tests."""

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from lesson_assistant.api.app import app
from lesson_assistant.api.deps import get_session
from lesson_assistant.auth.keys import hash_api_key
from lesson_assistant.storage.repositories import ChatMessageRepository

CHAT_URL = f"/api/v1/lessons/{uuid.uuid4()}/chat"


def _api_key_record(*, expires_at: datetime | None = None) -> MagicMock:
    """Mock APIKey ORM object joined with its User."""
    user = MagicMock()
    user.id = uuid.uuid4()
    user.name = "Learner"

    record = MagicMock()
    record.user_id = user.id
    record.user = user
    record.expires_at = expires_at
    record.key_prefix = "la_test_ab12"
    return record


def _lookup_returns(session: AsyncMock, record: MagicMock | None) -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = record
    session.execute.return_value = result


@pytest.fixture()
async def anon_client(mock_session: AsyncMock) -> AsyncGenerator[AsyncClient]:
    """AsyncClient with DB override but NO auth override."""
    app.dependency_overrides[get_session] = lambda: mock_session
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


class TestApiKeyAuth:
    async def test_missing_header(self, anon_client: AsyncClient) -> None:
        response = await anon_client.get(CHAT_URL)
        assert response.status_code in (401, 403)

    async def test_unknown_key(
        self, anon_client: AsyncClient, mock_session: AsyncMock
    ) -> None:
        """Unknown, revoked and deactivated-user keys all miss the lookup."""
        _lookup_returns(mock_session, None)
        response = await anon_client.get(CHAT_URL, headers={"X-API-Key": "la_x"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    async def test_expired_key(
        self, anon_client: AsyncClient, mock_session: AsyncMock
    ) -> None:
        _lookup_returns(
            mock_session,
            _api_key_record(expires_at=datetime.now(UTC) - timedelta(hours=1)),
        )
        response = await anon_client.get(CHAT_URL, headers={"X-API-Key": "la_x"})
        assert response.status_code == 401
        assert response.json()["detail"] == "API key expired"

    async def test_valid_key_reaches_endpoint(
        self, anon_client: AsyncClient, mock_session: AsyncMock
    ) -> None:
        _lookup_returns(mock_session, _api_key_record())
        with patch.object(
            ChatMessageRepository, "history", new=AsyncMock(return_value=[])
        ):
            response = await anon_client.get(
                CHAT_URL, headers={"X-API-Key": "la_live_valid"}
            )
        assert response.status_code == 200
        assert response.json() == {"items": []}

        stmt = mock_session.execute.call_args.args[0]
        assert hash_api_key("la_live_valid") in stmt.compile().params.values()

    @pytest.mark.parametrize(
        ("method", "url"),
        [
            ("post", f"/api/v1/lessons/{uuid.uuid4()}/chat"),
            ("get", f"/api/v1/lessons/{uuid.uuid4()}/progress"),
            ("patch", f"/api/v1/lessons/{uuid.uuid4()}/progress"),
            ("post", f"/api/v1/lessons/{uuid.uuid4()}/playback"),
            ("get", f"/api/v1/courses/{uuid.uuid4()}/progress"),
        ],
    )
    async def test_learner_endpoints_require_key(
        self, anon_client: AsyncClient, method: str, url: str
    ) -> None:
        response = await anon_client.request(method, url, json={})
        assert response.status_code in (401, 403)


class TestCORSRestriction:
    async def test_no_origins_by_default(self, anon_client: AsyncClient) -> None:
        response = await anon_client.options(
            "/health",
            headers={
                "Origin": "http://evil.com",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" not in response.headers
