"""
realitycheck — oracle provider adapters and shared provider API

File: src/realitycheck/oracle/providers/__init__.py
Last updated: 2026-10-15

Purpose
- Provider adapters (Anthropic default, OpenAI, Google) behind one
  `complete()` capability, plus the registry the CLI wiring consults.

Non-functional requirements
- Must never log secrets or raw API keys.
"""

from realitycheck.oracle.providers.anthropic_adapter import AnthropicProvider
from realitycheck.oracle.providers.base import (
    BaseProvider,
    OracleProvider,
    ProviderAuthenticationError,
    ProviderContextLengthError,
    ProviderError,
    ProviderFactory,
    ProviderInvalidRequestError,
    ProviderRateLimitError,
    ProviderRegistry,
    ProviderResponseError,
    ProviderServiceError,
    ProviderSettings,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from realitycheck.oracle.providers.google_adapter import GoogleProvider
from realitycheck.oracle.providers.openai_adapter import OpenAIProvider


def default_registry() -> ProviderRegistry:
    """Registry with every bundled adapter registered under its provider name."""

    registry = ProviderRegistry()
    registry.register(AnthropicProvider.provider_name, AnthropicProvider.from_settings)
    registry.register(OpenAIProvider.provider_name, OpenAIProvider.from_settings)
    registry.register(GoogleProvider.provider_name, GoogleProvider.from_settings)
    return registry


__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "GoogleProvider",
    "OpenAIProvider",
    "OracleProvider",
    "ProviderAuthenticationError",
    "ProviderContextLengthError",
    "ProviderError",
    "ProviderFactory",
    "ProviderInvalidRequestError",
    "ProviderRateLimitError",
    "ProviderRegistry",
    "ProviderResponseError",
    "ProviderServiceError",
    "ProviderSettings",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "default_registry",
]
