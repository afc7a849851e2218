"""Google Gemini adapter built on the google-genai SDK's async client."""

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
    _read_value,
)

logger = structlog.get_logger(__name__)


class _GoogleModelsAPI(Protocol):
    async def generate_content(self, **kwargs: object) -> object: ...


class _GoogleAsyncClient(Protocol):
    models: _GoogleModelsAPI


class GoogleProvider(BaseProvider):
    provider_name = "google"
    default_api_key_env = DEFAULT_API_KEY_ENVS["google"]

    def __init__(
        self,
        *,
        model: str,
        api_key: str | None = None,
        api_key_env: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        client: _GoogleAsyncClient | None = None,
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
            raw = await client.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config={
                    "system_instruction": system_prompt,
                    "max_output_tokens": max_output_tokens,
                    "temperature": temperature,
                    "response_mime_type": "application/json",
                },
            )
        except Exception as exc:
            raise self._map_exception(exc) from exc

        logger.debug("provider_response_received", provider=self.provider_name, model=self.model)
        return _extract_google_text(raw)

    def _ensure_client(self) -> _GoogleAsyncClient:
        if self._client is not None:
            return self._client
        self._client = self._create_default_client()
        return self._client

    def _create_default_client(self) -> _GoogleAsyncClient:
        try:
            genai_module = importlib.import_module("google.genai")
        except ImportError as exc:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="google-genai SDK is not installed",
            ) from exc

        client_cls = getattr(genai_module, "Client", None)
        if client_cls is None:
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="google-genai SDK does not expose Client",
            )

        init_kwargs: dict[str, object] = {"api_key": self._resolve_api_key()}
        http_options: dict[str, object] = {}
        if self._base_url is not None:
            http_options["base_url"] = self._base_url
        if self._timeout_seconds is not None:
            # google-genai expects milliseconds.
            http_options["timeout"] = int(self._timeout_seconds * 1000)
        if http_options:
            init_kwargs["http_options"] = http_options

        client = client_cls(**init_kwargs)
        async_client = getattr(client, "aio", None)
        if async_client is None or not hasattr(async_client, "models"):
            raise ProviderUnavailableError(
                provider=self.provider_name,
                detail="google-genai client missing async models API",
            )
        return cast("_GoogleAsyncClient", async_client)


def _extract_google_text(raw_response: object) -> str:
    direct = _read_str(raw_response, "text")
    if direct:
        return direct

    text_chunks: list[str] = []
    for candidate in _read_sequence(raw_response, "candidates"):
        content = _read_value(candidate, "content")
        for part in _read_sequence(content, "parts"):
            text_value = _read_str(part, "text")
            if text_value:
                text_chunks.append(text_value)

    if not text_chunks:
        raise ProviderResponseError(
            provider="google",
            detail="response does not contain text parts",
        )
    return "".join(text_chunks)


__all__ = ["GoogleProvider"]
