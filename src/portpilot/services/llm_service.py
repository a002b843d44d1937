"""LLM service with multi-provider support (Gemini, OpenAI)."""

from __future__ import annotations

from portpilot.config import get_llm_provider_name
from portpilot.services.llm_providers import (
    GeminiProvider,
    LLMConfigurationError,
    LLMProvider,
    OpenAIProvider,
)

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
}


class LLMService:
    def __init__(self, provider: LLMProvider | None = None) -> None:
        """Initialize LLM service with a specific provider.

        Args:
            provider: LLM provider instance. Defaults to the provider named by
                ``LLM_PROVIDER``.

        Raises:
            LLMConfigurationError: If the provider is unknown or not configured.
        """
        self.provider = provider or LLMService._get_default_llm_provider_from_env()

    @staticmethod
    def _get_default_llm_provider_from_env() -> LLMProvider:
        provider_name = get_llm_provider_name()
        provider_cls = _PROVIDERS.get(provider_name)
        if provider_cls is None:
            raise LLMConfigurationError(f"Unknown LLM provider: {provider_name}.")
        return provider_cls()

    def build_prompt(self, system_instructions: str, user_content: str) -> str:
        """Construct a full prompt with system and user parts."""
        return f"System instruction:\n{system_instructions}\n\nUser content:\n{user_content}"

    def generate_llm_response(
        self,
        system_instructions: str,
        user_content: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        seed: int | None = None,
    ) -> str:
        """Build a prompt and send it to the LLM in one step.

        Args:
            system_instructions: System-level instructions.
            user_content: User content.
            temperature: Controls randomness (0.0-2.0). Lower = more deterministic.
            max_tokens: Maximum response length. None = provider default.
            seed: Random seed for reproducibility (if supported by provider).

        Returns:
            The text response from the LLM.
        """
        prompt = self.build_prompt(system_instructions, user_content)
        config = self.provider.generate_llm_config(temperature, max_tokens, seed)
        return self.provider.send_prompt(prompt, config)
