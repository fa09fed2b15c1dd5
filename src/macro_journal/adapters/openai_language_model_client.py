"""OpenAI Responses API client for JSON completions."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from macro_journal.errors import UpstreamUnavailableError
from macro_journal.services.language_model import LanguageModelClient


@dataclass
class OpenAILanguageModelClient(LanguageModelClient):
    """Language model client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, timeout_seconds: float = 20.0, max_retries: int = 0
    ) -> "OpenAILanguageModelClient":
        """Create an OpenAI language model client."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key, timeout=timeout_seconds, max_retries=max_retries
            )
        )

    async def complete_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        instructions: str,
        text: str,
        temperature: float,
        max_output_tokens: int | None,
        store: bool,
    ) -> str:
        """Call OpenAI Responses API in JSON mode and return the output text."""
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": instructions,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": text}],
                }
            ],
            "text": {"format": {"type": "json_object"}},
            "temperature": temperature,
            "store": store,
        }
        if max_output_tokens:
            request_payload["max_output_tokens"] = max_output_tokens

        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise UpstreamUnavailableError("OpenAI request failed") from exc
        output_text = response.output_text
        if not output_text:
            raise UpstreamUnavailableError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
