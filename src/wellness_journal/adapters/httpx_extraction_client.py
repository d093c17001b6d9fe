"""Extraction client that goes through the same-origin AI proxy."""

from dataclasses import dataclass

import httpx

from wellness_journal.domain.conversation import ChatMessage
from wellness_journal.errors import ServiceUnavailable
from wellness_journal.services.extraction import ExtractionClient


@dataclass
class HttpxExtractionClient(ExtractionClient):
    """HTTPX-backed client for the ``{systemPrompt, messages}`` proxy."""

    proxy_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(cls, proxy_url: str, timeout: float = 30.0) -> "HttpxExtractionClient":
        """Create a proxy client with a managed httpx session."""
        return cls(
            proxy_url=proxy_url, http_client=httpx.AsyncClient(), timeout=timeout
        )

    async def complete(
        self, *, system_prompt: str, messages: list[ChatMessage]
    ) -> str:
        """Post the conversation to the proxy and return its content."""
        payload = {
            "systemPrompt": system_prompt,
            "messages": [
                {"role": message.role, "content": message.content}
                for message in messages
            ],
        }
        try:
            response = await self.http_client.post(
                self.proxy_url, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ServiceUnavailable(f"AI proxy request failed: {exc}") from exc
        except ValueError as exc:
            raise ServiceUnavailable("AI proxy returned invalid JSON") from exc

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise ServiceUnavailable("AI proxy returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
