"""Google Gemini provider via google-genai SDK."""

from google import genai
from google.genai import types

from lesson_assistant.llm.providers.base import LLMProvider
from lesson_assistant.llm.schemas import LLMRequest, LLMResponse, TurnRole

# Gemini names the assistant side "model".
_GEMINI_ROLES: dict[TurnRole, str] = {
    TurnRole.USER: "user",
    TurnRole.ASSISTANT: "model",
}


class GeminiProvider(LLMProvider):
    """Gemini provider using google-genai SDK."""

    provider_name = "gemini"

    def __init__(self, api_key: str, default_model: str) -> None:
        super().__init__()
        self._client = genai.Client(api_key=api_key)
        self._default_model = default_model

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Generate text completion via Gemini."""
        model = request.model or self._default_model
        config = types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            system_instruction=request.system_prompt,
        )
        contents = [
            types.Content(
                role=_GEMINI_ROLES[turn.role],
                parts=[types.Part(text=turn.content)],
            )
            for turn in request.dialogue
        ]

        with self._measure_latency() as timer:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )

        usage = response.usage_metadata
        return LLMResponse(
            content=response.text or "",
            provider=self.provider_name,
            model_id=model,
            tokens_in=usage.prompt_token_count if usage else None,
            tokens_out=usage.candidates_token_count if usage else None,
            latency_ms=timer.elapsed_ms,
        )
