"""OpenAI-backed narrative collaborator.

The collaborator is untrusted: transport failures become
ExternalUnavailable, and empty or non-JSON content becomes
ExternalResponseMalformed. Shape validation is left to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import openai
from openai import OpenAI

from src.config import Config
from src.errors import ExternalResponseMalformed, ExternalUnavailable

logger = logging.getLogger(__name__)

EXPERT_SYSTEM_PROMPT = (
    "You are an expert dog breed consultant with deep knowledge of breed "
    "characteristics, temperaments and care requirements. Give accurate, "
    "practical advice based on the data provided."
)


class NarrativeClient:
    """Thin wrapper over the OpenAI chat completions API.

    Args:
        api_key: OpenAI API key; without one every call fails with
            ExternalUnavailable.
        model: Chat model name.
        timeout: Per-request timeout in seconds.
        max_retries: Retries with exponential backoff done by the SDK.
        temperature: Sampling temperature.
        client: Pre-built OpenAI client, mainly for tests.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        max_retries: int = 0,
        temperature: float = 0.7,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> NarrativeClient:
        return cls(
            api_key=config.openai_api_key,
            model=config.openai_model,
            timeout=config.llm_timeout_seconds,
            max_retries=config.llm_max_retries,
            temperature=config.llm_temperature,
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _complete(self, prompt: str, system: str, max_tokens: int, json_mode: bool) -> str:
        if self._client is None:
            raise ExternalUnavailable("Narrative collaborator is not configured (no API key)")

        kwargs: dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.APITimeoutError as err:
            logger.error("Narrative request timed out")
            raise ExternalUnavailable("Narrative collaborator timed out") from err
        except openai.APIConnectionError as err:
            logger.error("Narrative request could not connect: %s", err)
            raise ExternalUnavailable(f"Narrative collaborator unreachable: {err}") from err
        except openai.APIError as err:
            logger.error("Narrative request failed: %s", err)
            raise ExternalUnavailable(f"Narrative collaborator error: {err}") from err

        if not response.choices:
            raise ExternalResponseMalformed("Narrative response had no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ExternalResponseMalformed("Narrative response was empty")
        return content

    def complete_text(
        self, prompt: str, system: str = EXPERT_SYSTEM_PROMPT, max_tokens: int = 800
    ) -> str:
        """Free-form prose completion."""
        return self._complete(prompt, system, max_tokens, json_mode=False).strip()

    def complete_json(
        self, prompt: str, system: str = EXPERT_SYSTEM_PROMPT, max_tokens: int = 2000
    ) -> Any:
        """JSON-mode completion, decoded.

        Raises:
            ExternalUnavailable: On timeout, connection or API errors.
            ExternalResponseMalformed: If the content is empty or not JSON.
        """
        content = self._complete(prompt, system, max_tokens, json_mode=True)
        try:
            return json.loads(content)
        except json.JSONDecodeError as err:
            logger.error("Narrative response is not valid JSON: %s", err)
            raise ExternalResponseMalformed(f"Narrative response is not JSON: {err}") from err
