"""Authenticated user context for request processing."""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class UserContext:
    """The learner behind a request, resolved from the X-API-Key header."""

    user_id: uuid.UUID
    user_name: str
    key_prefix: str
