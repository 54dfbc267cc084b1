"""Authentication and API key management."""

from lesson_assistant.auth.context import UserContext
from lesson_assistant.auth.keys import generate_api_key, hash_api_key

__all__ = ["UserContext", "generate_api_key", "hash_api_key"]
