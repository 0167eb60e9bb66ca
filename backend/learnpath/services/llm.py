"""Thin wrapper over the Anthropic messages API returning plain text or parsed JSON."""

import json
import logging
from typing import Any

from anthropic import APIError, AsyncAnthropic

from learnpath.config import get_settings
from learnpath.exceptions import GenerationError

logger = logging.getLogger(__name__)
settings = get_settings()


def extract_json(text: str) -> Any:
    """
    Parse JSON out of a model reply.

    Models sometimes wrap the payload in a fenced block or add a sentence
    around it, so fences are stripped and, failing that, the outermost
    object or array is sliced out.

    Raises:
        GenerationError: nothing in the reply parses as JSON
    """
    cleaned = text.strip()
    if "```json" in cleaned:
        start = cleaned.find("```json") + 7
        end = cleaned.find("```", start)
        cleaned = cleaned[start:end if end != -1 else None].strip()
    elif "```" in cleaned:
        start = cleaned.find("```") + 3
        end = cleaned.find("```", start)
        cleaned = cleaned[start:end if end != -1 else None].strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Whichever bracket opens first is the outermost value
    pairs = sorted((("{", "}"), ("[", "]")), key=lambda pair: (cleaned.find(pair[0]) == -1, cleaned.find(pair[0])))
    for opener, closer in pairs:
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue

    raise GenerationError("Language model returned content that is not valid JSON")


class LLMClient:
    """Sends a single system + user prompt and returns the reply text."""

    def __init__(self, client: AsyncAnthropic | None = None, *, model: str | None = None, max_tokens: int | None = None):
        # No retries: a failed call surfaces straight to the caller
        self.client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens or settings.llm_max_tokens

    async def complete(self, system: str, prompt: str) -> str:
        """
        Get the full text of one completion.

        Raises:
            GenerationError: the API call failed or returned no text
        """
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            logger.exception("Language model call failed")
            raise GenerationError(f"Language model call failed: {e}") from e

        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        if not text.strip():
            raise GenerationError("Language model returned an empty reply")
        return text

    async def complete_json(self, system: str, prompt: str) -> Any:
        """Completion parsed with extract_json."""
        return extract_json(await self.complete(system, prompt))

    async def aclose(self) -> None:
        await self.client.close()
