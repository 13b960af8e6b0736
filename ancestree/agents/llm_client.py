"""Unified async LLM client over OpenAI-compatible chat completions."""

import json
import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from ancestree.config import AISettings, settings

logger = logging.getLogger(__name__)


class LLMClient:
    """Chat-completions client. Gemini by default, through its OpenAI endpoint."""

    PROVIDERS = {
        "gemini": {
            "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
            "model": "gemini-1.5-flash",
            "api_key": None
        },
        "openai": {
            "base_url": "https://api.openai.com/v1",
            "model": "gpt-4o-mini",
            "api_key": None
        },
        "ollama": {
            "base_url": "http://localhost:11434/v1",
            "model": "llama3:latest",
            "api_key": "ollama"
        },
    }

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        ai_settings: Optional[AISettings] = None,
    ):
        self.settings = ai_settings or settings.ai
        self.provider = provider or self.settings.provider
        config = self.PROVIDERS.get(self.provider, self.PROVIDERS["gemini"])

        api_key = config["api_key"]
        if self.provider == "gemini":
            api_key = self.settings.gemini_api_key
        elif self.provider == "openai":
            api_key = self.settings.openai_api_key

        self.client = AsyncOpenAI(
            base_url=config["base_url"],
            api_key=api_key or "not-needed"
        )
        self.model = model or self.settings.model or config["model"]

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> dict:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.settings.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.settings.max_tokens
            )

            return {
                "success": True,
                "text": response.choices[0].message.content or "",
                "provider": self.provider,
                "model": self.model
            }

        except Exception as e:
            logger.warning("LLM call to %s/%s failed: %s", self.provider, self.model, e)
            return {"success": False, "error": str(e)}

    async def close(self) -> None:
        await self.client.close()


def parse_json_text(text: str) -> Any:
    """Pull a JSON value out of model output, fenced or bare.

    Raises ValueError when nothing parses.
    """
    text = (text or "").strip()

    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1]
    text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Prose around the payload: decode from the first bracket that opens a value
    decoder = json.JSONDecoder()
    for start, ch in enumerate(text):
        if ch not in "[{":
            continue
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            continue
        return value

    raise ValueError(f"No JSON found in model output: {text[:80]!r}")
