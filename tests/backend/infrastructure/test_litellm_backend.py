"""Tests for LiteLLMChatBackend."""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import openai
import pytest

from pecan.backend.domain.backend import ChatRequest
from pecan.backend.infrastructure.errors import BackendError
from pecan.backend.infrastructure.litellm import LiteLLMChatBackend
from pecan.config.domain.model import ModelConfig
from pecan.conversation.domain.message import Message, ToolCall
from tests.backend.fake_observer import FakeBackendObserver

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_backend(
    config: ModelConfig | None = None,
) -> tuple[LiteLLMChatBackend, FakeBackendObserver]:
    observer = FakeBackendObserver()
    cfg = config or ModelConfig(
        provider="openai", url="http://localhost:8080", model_id="gpt-test"
    )
    return LiteLLMChatBackend(name="test", config=cfg, observer=observer), observer


def _make_request(**overrides: Any) -> ChatRequest:
    fields: dict[str, Any] = {
        "messages": (Message.system("sys"), Message.user("hi")),
        "temperature": 0.7,
        "max_tokens": 128,
    }
    fields.update(overrides)
    return ChatRequest(**fields)


def _make_tool_call(call_id: str, name: str, arguments: str) -> MagicMock:
    tool_call = MagicMock()
    tool_call.id = call_id
    tool_call.function.name = name
    tool_call.function.arguments = arguments
    return tool_call


def _make_acompletion_response(
    content: str | None, tool_calls: list[MagicMock] | None = None
) -> MagicMock:
    """Build a mock litellm response object with the given message."""
    message = MagicMock()
    message.content = content
    message.tool_calls = tool_calls
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


async def _complete(
    backend: LiteLLMChatBackend, response: Any, request: ChatRequest | None = None
) -> tuple[Any, AsyncMock]:
    with patch("litellm.acompletion", new_callable=AsyncMock) as acompletion:
        acompletion.return_value = response
        result = await backend.complete(request or _make_request())
    return result, acompletion


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


class TestRequestKwargs:
    async def test_openai_model_is_prefixed_and_v1_appended(self) -> None:
        backend, _ = _make_backend()

        _, acompletion = await _complete(backend, _make_acompletion_response("hi"))

        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-test"
        assert kwargs["api_base"] == "http://localhost:8080/v1"
        assert kwargs["temperature"] == pytest.approx(0.7)
        assert kwargs["max_tokens"] == 128

    async def test_existing_v1_suffix_is_kept(self) -> None:
        backend, _ = _make_backend(
            ModelConfig(provider="openai", url="http://host/v1/", model_id="m")
        )

        _, acompletion = await _complete(backend, _make_acompletion_response("hi"))

        assert acompletion.call_args.kwargs["api_base"] == "http://host/v1"

    async def test_llama_cpp_gets_placeholder_key(self) -> None:
        backend, _ = _make_backend(
            ModelConfig(provider="llama.cpp", url="http://localhost:8080")
        )

        _, acompletion = await _complete(backend, _make_acompletion_response("hi"))

        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "openai/default"
        assert kwargs["api_key"] == "sk-no-key-required"

    async def test_litellm_provider_passes_model_id_through(self) -> None:
        backend, _ = _make_backend(
            ModelConfig(provider="litellm", model_id="anthropic/claude-x", api_key="k")
        )

        _, acompletion = await _complete(backend, _make_acompletion_response("hi"))

        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "anthropic/claude-x"
        assert kwargs["api_key"] == "k"
        assert "api_base" not in kwargs

    def test_litellm_provider_requires_model_id(self) -> None:
        with pytest.raises(BackendError, match="model_id"):
            _make_backend(ModelConfig(provider="litellm"))

    async def test_tools_are_sent_when_present(self) -> None:
        backend, _ = _make_backend()
        tools = [{"type": "function", "function": {"name": "echo"}}]

        _, acompletion = await _complete(
            backend,
            _make_acompletion_response("hi"),
            _make_request(tool_definitions=tools),
        )

        assert acompletion.call_args.kwargs["tools"] == tools

    async def test_messages_are_converted_to_wire_format(self) -> None:
        backend, _ = _make_backend()
        call = ToolCall(id="c1", name="read_file", arguments={"path": "/x"})
        request = _make_request(
            messages=(
                Message.user("read it"),
                Message.assistant(None, tool_calls=[call]),
                Message.tool("c1", '{"content": "data"}'),
            )
        )

        _, acompletion = await _complete(
            backend, _make_acompletion_response("done"), request
        )

        wire = acompletion.call_args.kwargs["messages"]
        assert wire[0] == {"role": "user", "content": "read it"}
        assert wire[1]["tool_calls"][0]["function"] == {
            "name": "read_file",
            "arguments": json.dumps({"path": "/x"}),
        }
        assert wire[2]["tool_call_id"] == "c1"


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestResponseParsing:
    async def test_text_response(self) -> None:
        backend, observer = _make_backend()

        result, _ = await _complete(backend, _make_acompletion_response("hello"))

        assert result.content == "hello"
        assert result.tool_calls is None
        assert len(observer.started) == 1
        assert observer.completed[0].tool_call_count == 0

    async def test_tool_call_arguments_are_decoded(self) -> None:
        backend, observer = _make_backend()
        response = _make_acompletion_response(
            None, [_make_tool_call("c1", "shell", '{"command": "ls"}')]
        )

        result, _ = await _complete(backend, response)

        assert result.tool_calls == (
            ToolCall(id="c1", name="shell", arguments={"command": "ls"}),
        )
        assert observer.completed[0].tool_call_count == 1

    async def test_undecodable_arguments_pass_through_raw(self) -> None:
        backend, _ = _make_backend()
        response = _make_acompletion_response(
            None, [_make_tool_call("c1", "shell", "{not json")]
        )

        result, _ = await _complete(backend, response)

        assert result.tool_calls is not None
        assert result.tool_calls[0].arguments == "{not json"

    async def test_empty_arguments_become_empty_object(self) -> None:
        backend, _ = _make_backend()
        response = _make_acompletion_response(None, [_make_tool_call("c1", "t", "")])

        result, _ = await _complete(backend, response)

        assert result.tool_calls is not None
        assert result.tool_calls[0].arguments == {}

    async def test_no_choices_raises_backend_error(self) -> None:
        backend, observer = _make_backend()
        response = MagicMock()
        response.choices = []

        with pytest.raises(BackendError, match="no message"):
            await _complete(backend, response)

        assert len(observer.failed) == 1


class TestTransportFailure:
    async def test_litellm_exception_is_wrapped(self) -> None:
        backend, observer = _make_backend()

        with patch("litellm.acompletion", new_callable=AsyncMock) as acompletion:
            acompletion.side_effect = RuntimeError("connection refused")
            with pytest.raises(BackendError, match="connection refused") as exc_info:
                await backend.complete(_make_request())

        assert exc_info.value.retriable is True
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert observer.failed[0].reason == "connection refused"

    async def test_openai_connection_error_message_starts_with_failed(self) -> None:
        backend, _ = _make_backend()

        with patch(
            "pecan.backend.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(side_effect=openai.APIConnectionError(request=MagicMock())),
        ):
            with pytest.raises(BackendError) as exc_info:
                await backend.complete(_make_request())

        assert str(exc_info.value).startswith("Failed to ")
