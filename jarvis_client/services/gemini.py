"""HTTP client for the Gemini generation service."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import httpx

from jarvis_client.core.config import Settings
from jarvis_client.core.errors import BackendError
from jarvis_client.core.logger import backend as logger
from jarvis_client.services.schemas import Message, Role


class GenerationBackend(Protocol):
    """Anything able to turn the latest user text and its history into a reply."""

    async def generate(self, text: str, history: Sequence[Message]) -> str: ...


_ROLE_MAP = {Role.USER: "user", Role.ASSISTANT: "model"}


def build_contents(text: str, history: Sequence[Message]) -> list[dict[str, Any]]:
    """Translate the conversation into Gemini ``contents`` turns."""
    contents: list[dict[str, Any]] = []
    for message in history:
        role = _ROLE_MAP.get(message.role)
        if role is None:
            continue
        if not contents and role == "model":
            # The exchange has to open with a user turn.
            continue
        contents.append({"role": role, "parts": [{"text": message.content}]})
    contents.append({"role": "user", "parts": [{"text": text}]})
    return contents


def _extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))


class GeminiClient:
    """Async client for the ``generateContent`` endpoint."""

    def __init__(self, settings: Settings, *, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.gemini_base_url,
            timeout=httpx.Timeout(settings.gemini_timeout, connect=10.0),
        )

    async def generate(self, text: str, history: Sequence[Message]) -> str:
        """Send the exchange to Gemini and return the reply text."""
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise BackendError("gemini_api_key is not configured")

        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": self.settings.system_prompt}]},
            "contents": build_contents(text, history),
            "generationConfig": {"temperature": self.settings.temperature},
        }
        url = f"/v1beta/models/{self.settings.gemini_model}:generateContent"
        logger.info("generate model=%s turns=%d", self.settings.gemini_model, len(payload["contents"]))
        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"x-goog-api-key": api_key},
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise BackendError("Timed out waiting for the generation service") from exc
        except httpx.HTTPStatusError as exc:
            snippet = exc.response.text[:200]
            raise BackendError(f"Generation service returned {exc.response.status_code}: {snippet}") from exc
        except httpx.RequestError as exc:
            raise BackendError(f"Unable to reach the generation service: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(f"Non-JSON response: {response.text[:200]}") from exc
        answer = _extract_text(data).strip()
        if not answer:
            raise BackendError("Generation service returned no candidate text")
        return answer

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
