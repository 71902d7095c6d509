from __future__ import annotations

import asyncio
import logging
import warnings
from collections.abc import Mapping
from typing import Any

import litellm
from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS, ArrangementResult
from ..errors import (
    ArrangementError,
    AuthError,
    EmptyResponseError,
    InputValidationError,
    MalformedResultError,
    TransportError,
)
from ..outcome import ArrangementErr, ArrangementOk, ArrangementOutcome
from ..prompts import ArrangementRequest, build_messages

_LOGGER = logging.getLogger("pianomorph.providers.litellm")
_RESERVED_LITELLM_KWARGS = frozenset({"model", "messages", "response_format", "api_key", "timeout"})
_AUTH_ERROR_MARKERS = (
    "Requested entity was not found",
    "API key not valid",
    "API_KEY_INVALID",
)
_litellm_logging_configured = False


def _configure_litellm_logging() -> None:
    global _litellm_logging_configured
    if _litellm_logging_configured:
        return
    _litellm_logging_configured = True
    try:
        litellm.turn_off_message_logging = True
        litellm.disable_streaming_logging = True
    except Exception as exc:
        _LOGGER.info("LiteLLM logging config failed: %s", exc, exc_info=True)
    warnings.filterwarnings("ignore", message="Pydantic serializer warnings")


def _extract_json_payload(content: str) -> str | None:
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return content[start : end + 1]


def _content_snippet(content: str, limit: int = 200) -> str:
    cleaned = content.strip()
    if len(cleaned) <= limit:
        return cleaned
    return f"{cleaned[:limit]}..."


def is_auth_failure(exc: BaseException) -> bool:
    """True when ``exc`` means the credential or model identity cannot be resolved."""
    auth_types = (
        litellm.AuthenticationError,
        litellm.NotFoundError,
        litellm.PermissionDeniedError,
    )
    if isinstance(exc, auth_types):
        return True
    message = str(exc)
    return any(marker in message for marker in _AUTH_ERROR_MARKERS)


class _LiteLLMRequest(BaseModel):
    model: str
    messages: list[dict[str, Any]]
    response_format: type[BaseModel]
    temperature: float | None = None
    api_key: str | None = None
    timeout: float | None = None


class LiteLLMArrangementClient:
    """Single-shot arrangement client backed by ``litellm.acompletion``."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        api_key: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        temperature: float | None = None,
        litellm_kwargs: Mapping[str, Any] | None = None,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._temperature = temperature
        self._litellm_kwargs = dict(litellm_kwargs or {})
        if self._api_key is None:
            _LOGGER.debug("No API key provided; letting LiteLLM read from env vars.")
        invalid_keys = _RESERVED_LITELLM_KWARGS.intersection(self._litellm_kwargs)
        if invalid_keys:
            keys = ", ".join(sorted(invalid_keys))
            raise InputValidationError(f"litellm_kwargs cannot override: {keys}")

    @property
    def model(self) -> str:
        return self._model

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None
        _LOGGER.info("Arrangement credential updated (present=%s).", bool(self._api_key))

    async def aclose(self) -> None:
        close_fn: Any = getattr(litellm, "aclose", None)
        if close_fn is None:
            close_fn = getattr(litellm, "close_litellm_async_clients", None)
        if close_fn is None:
            return
        try:
            await close_fn()
        except Exception as exc:
            _LOGGER.warning("LiteLLM close failed: %s", exc, exc_info=True)

    async def submit(self, request: ArrangementRequest) -> ArrangementOutcome:
        """Run one round trip and return its outcome; never raises arrangement errors."""
        try:
            result = await self.generate(request)
        except ArrangementError as exc:
            return ArrangementErr(exc)
        return ArrangementOk(result)

    async def generate(self, request: ArrangementRequest) -> ArrangementResult:
        _configure_litellm_logging()
        payload = _LiteLLMRequest(
            model=self._model,
            messages=build_messages(request),
            response_format=request.response_format,
            temperature=self._temperature,
            api_key=self._api_key,
            timeout=self._timeout,
        ).model_dump(exclude_none=True)
        payload.update(self._litellm_kwargs)
        _LOGGER.info(
            "Arrangement request: model=%s image=%s timeout=%s",
            self._model,
            request.is_image,
            self._timeout,
        )

        try:
            response: Any = await asyncio.wait_for(
                litellm.acompletion(**payload),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            _LOGGER.warning("Arrangement request timed out after %ss.", self._timeout)
            raise TransportError(f"Model call timed out after {self._timeout}s") from exc
        except Exception as exc:
            if is_auth_failure(exc):
                _LOGGER.warning("Arrangement credential rejected: %s", exc)
                raise AuthError(str(exc)) from exc
            _LOGGER.warning("LiteLLM request failed: %s", exc, exc_info=True)
            raise TransportError(str(exc)) from exc

        content = self._response_text(response)
        return self._parse_result(content)

    def _response_text(self, response: Any) -> str:
        try:
            raw_content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise EmptyResponseError("No text content returned from the arrangement model.") from exc
        if not isinstance(raw_content, str) or not raw_content.strip():
            raise EmptyResponseError("No text content returned from the arrangement model.")
        return raw_content.strip()

    def _parse_result(self, content: str) -> ArrangementResult:
        try:
            return ArrangementResult.model_validate_json(content)
        except ValidationError as exc:
            extracted = _extract_json_payload(content)
            if extracted and extracted != content:
                try:
                    return ArrangementResult.model_validate_json(extracted)
                except ValidationError:
                    _LOGGER.warning("Model returned invalid JSON after extraction.", exc_info=True)
            snippet = _content_snippet(content) or "<empty>"
            _LOGGER.warning("Model returned a malformed arrangement: %s", snippet)
            raise MalformedResultError(f"Model returned a malformed arrangement: {snippet}") from exc
