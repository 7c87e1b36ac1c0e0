"""OpenAI client for structured recipe text and dish photos."""

import base64
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from recipe_wizard.services.generation import GenerationClient


@dataclass
class OpenAIGenerationClient(GenerationClient):
    """Generation client backed by the OpenAI Responses and Images APIs."""

    client: AsyncOpenAI
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str) -> "OpenAIGenerationClient":
        """Create an OpenAI generation client with a managed httpx session."""
        return cls(client=AsyncOpenAI(api_key=api_key), http_client=httpx.AsyncClient())

    async def generate_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Call the Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def generate_image(self, *, model: str, prompt: str) -> bytes | None:
        """Generate one square image and return its bytes."""
        response = await self.client.images.generate(
            model=model, prompt=prompt, n=1, size="1024x1024"
        )
        if not response.data:
            return None
        image = response.data[0]
        if image.b64_json:
            return base64.b64decode(image.b64_json)
        if image.url:
            download = await self.http_client.get(image.url, timeout=30)
            download.raise_for_status()
            return download.content
        return None

    async def close(self) -> None:
        """Close the underlying HTTP sessions."""
        await self.http_client.aclose()
        await self.client.close()
