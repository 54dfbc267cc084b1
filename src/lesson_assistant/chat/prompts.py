"""Chat prompt template loading and rendering."""

import re
from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator


class ChatPrompt(BaseModel):
    """Validated chat prompt loaded from YAML.

    Fields:
        version: Prompt version, recorded with each LLM call.
        system_prompt: Tutor instructions with a ``{context}`` placeholder
            where the serialized transcript goes.
        fallback_answer: Stored as the assistant turn when the model
            returns no text.
    """

    version: str = "unknown"
    system_prompt: str
    fallback_answer: str = "I could not generate a response."

    @field_validator("system_prompt")
    @classmethod
    def _requires_context_placeholder(cls, value: str) -> str:
        if "{context}" not in value:
            raise ValueError("system_prompt must contain a {context} placeholder")
        return value


def load_chat_prompt(path: str | Path) -> ChatPrompt:
    """Load chat prompt template from YAML file.

    Raises:
        FileNotFoundError: If the prompt file does not exist.
        ValidationError: If required keys are missing or invalid.
    """
    prompt_path = Path(path)
    if not prompt_path.exists():
        raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

    with prompt_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return ChatPrompt.model_validate(data)


_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def render_system_prompt(template: str, context: str, **kwargs: str) -> str:
    """Fill ``{context}`` (and any extra placeholders) in one pass.

    Single-pass substitution means braces inside the transcript text are
    never re-scanned as placeholders. Unknown placeholders are left as is.
    """
    replacements: dict[str, str] = {"context": context, **kwargs}

    def _replace(match: re.Match[str]) -> str:
        return replacements.get(match.group(1), match.group(0))

    return _PLACEHOLDER_RE.sub(_replace, template)
