"""LLM provider implementations."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

from portpilot.config import get_llm_timeout


class LLMError(RuntimeError):
    """Raised when LLM service cannot be used or fails."""


class LLMConfigurationError(LLMError):
    """Raised when the LLM provider is unknown or its API key is not configured."""


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def generate_llm_config(
        self,
        temperature: float,
        max_tokens: int | None,
        seed: int | None,
    ) -> dict:
        """Generate llm configs

        Args:
            temperature: Controls randomness
            max_tokens: Maximum response length
            seed: Random seed for reproducibility

        Returns:
            Configuration dictionary with common parameters
        """
        config = {}

        if temperature is not None:
            config["temperature"] = temperature
        if max_tokens is not None:
            config["max_tokens"] = max_tokens
        if seed is not None:
            config["seed"] = seed

        return config

    @abstractmethod
    def send_prompt(self, prompt: str, config: dict) -> str:
        """Send a prompt to the LLM and return the text response.

        Args:
            prompt: The full prompt string to send to the LLM.
            config: Configuration dictionary for the LLM request.

        Returns:
            The text response from the LLM.
        """


class GeminiProvider(LLMProvider):
    """Gemini implementation."""

    def __init__(self) -> None:
        """Initialize Gemini provider with API key from environment."""
        from google import genai

        self.api_key = os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise LLMConfigurationError("Missing GEMINI_API_KEY environment variable")

        self.model = os.environ.get("LLM_MODEL", "gemini-2.0-flash")
        # HttpOptions.timeout is expressed in milliseconds.
        self.client = genai.Client(
            api_key=self.api_key,
            http_options={"timeout": int(get_llm_timeout() * 1000)},
        )

    def generate_llm_config(
        self,
        temperature: float,
        max_tokens: int | None,
        seed: int | None,
    ) -> dict:
        """Generate Gemini-specific configuration dictionary."""
        config = super().generate_llm_config(temperature, max_tokens, seed)

        # Map common 'max_tokens' to Gemini's 'max_output_tokens'
        if "max_tokens" in config:
            config["max_output_tokens"] = config.pop("max_tokens")

        return config

    def send_prompt(self, prompt: str, config: dict) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model, contents=prompt, config=config
            )
        except Exception as e:
            raise LLMError(f"Gemini API call failed: {e}") from e

        if not response.text:
            raise LLMError("Gemini returned an empty response")
        return response.text.strip()


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions implementation."""

    def __init__(self) -> None:
        """Initialize OpenAI provider with API key from environment."""
        from openai import OpenAI

        self.api_key = os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise LLMConfigurationError("Missing OPENAI_API_KEY environment variable")

        self.model = os.environ.get("LLM_MODEL", "gpt-4o-mini")
        self.client = OpenAI(api_key=self.api_key, timeout=get_llm_timeout())

    def send_prompt(self, prompt: str, config: dict) -> str:
        if not self.api_key.startswith("sk-"):
            raise LLMError("Invalid OPENAI_API_KEY format")
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **config,
            )
        except Exception as e:
            raise LLMError(f"OpenAI API call failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise LLMError("OpenAI returned an empty response")
        return content.strip()
