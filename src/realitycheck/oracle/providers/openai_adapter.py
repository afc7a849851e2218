"""
realitycheck — OpenAI provider adapter

File: src/realitycheck/oracle/providers/openai_adapter.py
Last updated: 2026-10-15

Purpose
- OpenAI Responses API adapter.

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


class _OpenAIResponsesAPI(Protocol):
    async def create(self, **kwargs: object) -> object: ...


class _OpenAIClient(Protocol):
    responses: _OpenAIResponsesAPI


class OpenAIProvider(BaseProvider):
    """OpenAI Responses API adapter with optional SDK dependency and injected client support."""

    provider_name = "openai"
    default_api_key_env = DEFAULT_API_KEY_ENVS["openai"]

    def __init__(
        self,
        *,
        model: str,
        api_key: str | None = None,
        api_key_env: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        client: _OpenAIClient | None = None,
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
            raw = await client.responses.create(
                model=self.model,
                instructions=system_prompt,
                input=user_prompt,
                max_output_tokens=max_output_tokens,
                temperature=temperature,
                text={"format": {"type": "json_object"}},
            )
        except Exception as exc:
            raise self._map_exception(exc) from exc

        logger.debug(
            "provider_response_received",
            provider=self.provider_name,
            model=self.model,
            status=_read_str(raw, "status"),
        )
        return _extract_openai_text(raw)

    def _ensure_client(self) -> _OpenAIClient:
        if self._client is not None:
            return self._client
        self._client = self._create_default_client()
        return self._client

    def _create_default_client(self) -> _OpenAIClient:
        try:
            openai_module = importlib.import_module("openai")
        except ImportError as exc:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="openai SDK is not installed",
            ) from exc

        async_openai = getattr(openai_module, "AsyncOpenAI", None)
        if async_openai is None:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="openai SDK does not expose AsyncOpenAI",
            )

        init_kwargs: dict[str, object] = {"api_key": self._resolve_api_key()}
        if self._base_url is not None:
            init_kwargs["base_url"] = self._base_url
        if self._timeout_seconds is not None:
            init_kwargs["timeout"] = self._timeout_seconds

        client = async_openai(**init_kwargs)
        if not hasattr(client, "responses"):
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="openai client missing responses API",
            )
        return cast("_OpenAIClient", client)


def _extract_openai_text(raw_response: object) -> str:
    direct_output = _read_str(raw_response, "output_text")
    if direct_output:
        return direct_output

    text_chunks: list[str] = []
    for item in _read_sequence(raw_response, "output"):
        if (_read_str(item, "type") or "").lower() != "message":
            continue
        for content_part in _read_sequence(item, "content"):
            content_type = (_read_str(content_part, "type") or "").lower()
            if content_type in {"output_text", "text"}:
                text_value = _read_str(content_part, "text")
                if text_value:
                    text_chunks.append(text_value)

    if not text_chunks:
        raise ProviderResponseError(
            provider="openai",
            detail="response does not contain output text",
        )
    return "".join(text_chunks)


__all__ = ["OpenAIProvider"]
