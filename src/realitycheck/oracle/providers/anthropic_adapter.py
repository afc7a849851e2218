"""
realitycheck — Anthropic provider adapter

File: src/realitycheck/oracle/providers/anthropic_adapter.py
Last updated: 2026-10-15

Purpose
- Anthropic messages adapter (Claude-class), the default oracle backend.

Non-functional requirements
- SDK is imported lazily; tests inject a fake client.
- No secrets in logs or error messages.
"""

from __future__ import annotations

import importlib
from typing import Protocol, cast

import structlog

from realitycheck.constants import DEFAULT_API_KEY_ENVS
from realitycheck.oracle.providers.base import (
    BaseProvider,
    ProviderResponseError,
    ProviderUnavailableError,
    _read_sequence,
    _read_str,
)

logger = structlog.get_logger(__name__)


class _AnthropicMessagesAPI(Protocol):
    async def create(self, **kwargs: object) -> object: ...


class _AnthropicClient(Protocol):
    messages: _AnthropicMessagesAPI


class AnthropicProvider(BaseProvider):
    """Anthropic messages adapter with optional SDK dependency and injected client support."""

    provider_name = "anthropic"
    default_api_key_env = DEFAULT_API_KEY_ENVS["anthropic"]

    def __init__(
        self,
        *,
        model: str,
        api_key: str | None = None,
        api_key_env: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        client: _AnthropicClient | None = None,
    ) -> None:
        super().__init__(
            model=model,
            api_key=api_key,
            api_key_env=api_key_env,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )
        self._client = client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        client = self._ensure_client()
        try:
            raw = await client.messages.create(
                model=self.model,
                max_tokens=max_output_tokens,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except Exception as exc:
            raise self._map_exception(exc) from exc

        logger.debug(
            "provider_response_received",
            provider=self.provider_name,
            model=self.model,
            stop_reason=_read_str(raw, "stop_reason"),
        )
        return _extract_anthropic_text(raw)

    def _ensure_client(self) -> _AnthropicClient:
        if self._client is not None:
            return self._client
        self._client = self._create_default_client()
        return self._client

    def _create_default_client(self) -> _AnthropicClient:
        try:
            anthropic_module = importlib.import_module("anthropic")
        except ImportError as exc:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="anthropic SDK is not installed",
            ) from exc

        async_anthropic = getattr(anthropic_module, "AsyncAnthropic", None)
        if async_anthropic is None:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="anthropic SDK does not expose AsyncAnthropic",
            )

        init_kwargs: dict[str, object] = {"api_key": self._resolve_api_key()}
        if self._base_url is not None:
            init_kwargs["base_url"] = self._base_url
        if self._timeout_seconds is not None:
            init_kwargs["timeout"] = self._timeout_seconds

        client = async_anthropic(**init_kwargs)
        if not hasattr(client, "messages"):
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="anthropic client missing messages API",
            )
        return cast("_AnthropicClient", client)


def _extract_anthropic_text(raw_response: object) -> str:
    text_chunks: list[str] = []
    for item in _read_sequence(raw_response, "content"):
        if (_read_str(item, "type") or "").lower() == "text":
            text_value = _read_str(item, "text")
            if text_value:
                text_chunks.append(text_value)

    if not text_chunks:
        raise ProviderResponseError(
            provider="anthropic",
            detail="response does not contain text content",
        )
    return "".join(text_chunks)


__all__ = ["AnthropicProvider"]
