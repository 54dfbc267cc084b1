"""Lesson chat: prompt, completion gateway and the send orchestration."""

from lesson_assistant.chat.gateway import CompletionGateway, ModelRouterGateway
from lesson_assistant.chat.prompts import ChatPrompt, load_chat_prompt
from lesson_assistant.chat.session import ChatReply, ChatSession, ChatState, SendGuard

__all__ = [
    "ChatPrompt",
    "ChatReply",
    "ChatSession",
    "ChatState",
    "CompletionGateway",
    "ModelRouterGateway",
    "SendGuard",
    "load_chat_prompt",
]
