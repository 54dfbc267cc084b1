"""Fixtures shared by the API route tests.

The ASGI transport does not run the lifespan, so handles normally put on
``app.state`` at startup are supplied through dependency overrides.
"""

import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from lesson_assistant.api.app import app
from lesson_assistant.api.deps import get_current_user, get_session
from lesson_assistant.auth.context import UserContext

STUB_USER = UserContext(
    user_id=uuid.uuid4(),
    user_name="test-learner",
    key_prefix="la_test_ab12",
)


@pytest.fixture()
def user() -> UserContext:
    return STUB_USER


@pytest.fixture()
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture()
async def client(mock_session: AsyncMock) -> AsyncGenerator[AsyncClient]:
    """AsyncClient with DB and auth overridden."""
    app.dependency_overrides[get_session] = lambda: mock_session
    app.dependency_overrides[get_current_user] = lambda: STUB_USER
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
