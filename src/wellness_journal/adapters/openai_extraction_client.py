"""OpenAI Responses API client for entry extraction."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from wellness_journal.domain.conversation import ChatMessage
from wellness_journal.errors import ServiceUnavailable
from wellness_journal.services.extraction import ExtractionClient


@dataclass
class OpenAIExtractionClient(ExtractionClient):
    """Extraction client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False
    timeout: float = 30.0

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
        timeout: float = 30.0,
    ) -> "OpenAIExtractionClient":
        """Create an OpenAI extraction client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
            timeout=timeout,
        )

    async def complete(
        self, *, system_prompt: str, messages: list[ChatMessage]
    ) -> str:
        """Call OpenAI Responses API with the conversation."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "instructions": system_prompt,
            "input": [
                {"role": message.role, "content": message.content}
                for message in messages
            ],
            "store": self.store,
            "timeout": self.timeout,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except openai.APIError as exc:
            raise ServiceUnavailable(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text or not output_text.strip():
            raise ServiceUnavailable("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()
