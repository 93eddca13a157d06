"""LiteLLMChatBackend — OpenAI-compatible chat completions via LiteLLM."""

import json
import time
from typing import Any

import litellm

from pecan.backend.domain.backend import ChatRequest, ChatResponse
from pecan.backend.domain.observer import BackendObserver
from pecan.backend.infrastructure.errors import BackendError
from pecan.config.domain.model import ModelConfig
from pecan.conversation.domain.message import Message, ToolCall

# llama.cpp ignores the key, but the OpenAI client refuses to send without one.
_PLACEHOLDER_API_KEY = "sk-no-key-required"


class LiteLLMChatBackend:
    """Chat backend that delegates to litellm.acompletion.

    "openai" and "llama.cpp" models are routed through LiteLLM's OpenAI
    provider with an explicit api_base; "litellm" models pass model_id through
    unchanged so any LiteLLM-supported provider string works.
    """

    def __init__(
        self, name: str, config: ModelConfig, observer: BackendObserver
    ) -> None:
        self._name = name
        self._config = config
        self._observer = observer
        self._model = _resolve_model(config=config)

    @property
    def name(self) -> str:
        return self._name

    async def complete(self, request: ChatRequest) -> ChatResponse:
        """
        Send the request and map the first choice back to a ChatResponse.

        Raises:
            BackendError: if the LiteLLM call fails or the reply has no usable
                message.
        """
        self._observer.backend_request_started(
            backend=self._name,
            model=self._model,
            message_count=len(request.messages),
            tool_count=len(request.tool_definitions or []),
        )

        start = time.monotonic()
        try:
            response = await litellm.acompletion(**self._build_kwargs(request))
        except Exception as exc:
            reason = str(exc)
            self._observer.backend_request_failed(
                backend=self._name, model=self._model, reason=reason
            )
            raise BackendError(reason=reason) from exc

        try:
            result = _parse_response(response)
        except BackendError as exc:
            self._observer.backend_request_failed(
                backend=self._name, model=self._model, reason=exc.reason
            )
            raise

        self._observer.backend_request_completed(
            backend=self._name,
            model=self._model,
            duration_ms=int((time.monotonic() - start) * 1000),
            tool_call_count=len(result.tool_calls or ()),
        )
        return result

    def _build_kwargs(self, request: ChatRequest) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [_to_wire(message) for message in request.messages],
        }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens
        if request.tool_definitions:
            kwargs["tools"] = request.tool_definitions
        if self._config.url:
            kwargs["api_base"] = _api_base(self._config.url)
        api_key = self._config.api_key
        if api_key is None and self._config.provider == "llama.cpp":
            api_key = _PLACEHOLDER_API_KEY
        if api_key is not None:
            kwargs["api_key"] = api_key
        return kwargs


def _resolve_model(config: ModelConfig) -> str:
    if config.provider == "litellm":
        if not config.model_id:
            raise BackendError(reason="litellm models require a model_id")
        return config.model_id
    return f"openai/{config.model_id or 'default'}"


def _api_base(url: str) -> str:
    base = url.rstrip("/")
    return base if base.endswith("/v1") else f"{base}/v1"


def _to_wire(message: Message) -> dict[str, Any]:
    wire: dict[str, Any] = {"role": message.role.value, "content": message.content}
    if message.tool_calls:
        wire["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": _encode_arguments(call.arguments),
                },
            }
            for call in message.tool_calls
        ]
    if message.tool_call_id is not None:
        wire["tool_call_id"] = message.tool_call_id
    return wire


def _encode_arguments(arguments: Any) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


def _decode_arguments(raw: str | None) -> Any:
    """Decode the JSON argument string; undecodable text is passed through as-is.

    The tool then rejects the non-object arguments and the model sees the error
    on its next step instead of the whole turn failing.
    """
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_response(response: Any) -> ChatResponse:
    try:
        message = response.choices[0].message
    except (AttributeError, IndexError, TypeError) as exc:
        raise BackendError(reason=f"response has no message: {exc}") from exc

    raw_calls = getattr(message, "tool_calls", None) or []
    try:
        calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_decode_arguments(call.function.arguments),
            )
            for call in raw_calls
        ]
    except (AttributeError, TypeError, ValueError) as exc:
        raise BackendError(reason=f"malformed tool call: {exc}") from exc

    content = getattr(message, "content", None)
    return ChatResponse(
        content=content if isinstance(content, str) else None,
        tool_calls=tuple(calls) if calls else None,
    )
