"""Tests for ConversationState and its request view."""

from pecan.conversation.domain.message import Message, Role, ToolCall
from pecan.conversation.domain.state import ConversationState

SYSTEM_PROMPT = "You are a test assistant."


def _make_state(*messages: Message) -> ConversationState:
    state = ConversationState(system_prompt=SYSTEM_PROMPT)
    for message in messages:
        state.append(message)
    return state


def _call(call_id: str, name: str = "read_file") -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments={"path": "/tmp/x"})


class TestHistory:
    """append/clear/messages behave like an append-only log."""

    def test_starts_with_system_prompt(self) -> None:
        state = _make_state()

        assert len(state) == 1
        assert state.messages[0] == Message.system(SYSTEM_PROMPT)

    def test_messages_returns_a_copy(self) -> None:
        state = _make_state(Message.user("hi"))

        state.messages.append(Message.user("sneaky"))

        assert len(state) == 2

    def test_clear_truncates_to_system_prompt(self) -> None:
        state = _make_state(Message.user("hi"), Message.assistant("hello"))

        state.clear()

        assert state.messages == [Message.system(SYSTEM_PROMPT)]


class TestRequestView:
    """build_request_view enforces the tool-call satisfaction rules."""

    def test_plain_conversation_passes_through(self) -> None:
        state = _make_state(Message.user("hi"), Message.assistant("hello"))

        view = state.build_request_view()

        assert view.early_return is False
        assert [m.role for m in view.messages] == [
            Role.SYSTEM,
            Role.USER,
            Role.ASSISTANT,
        ]

    def test_empty_assistant_message_is_dropped(self) -> None:
        state = _make_state(Message.user("hi"), Message.assistant(None))

        view = state.build_request_view()

        assert [m.role for m in view.messages] == [Role.SYSTEM, Role.USER]

    def test_assistant_with_empty_string_content_is_dropped(self) -> None:
        state = _make_state(Message.user("hi"), Message.assistant(""))

        view = state.build_request_view()

        assert len(view.messages) == 2

    def test_satisfied_batch_is_kept(self) -> None:
        state = _make_state(
            Message.user("read two files"),
            Message.assistant(None, tool_calls=[_call("a"), _call("b")]),
            Message.tool("a", '{"content": "1"}'),
            Message.tool("b", '{"content": "2"}'),
        )

        view = state.build_request_view()

        assert view.early_return is False
        assert len(view.messages) == 5
        assert view.messages[2].tool_calls == (_call("a"), _call("b"))

    def test_unsatisfied_last_batch_returns_early(self) -> None:
        state = _make_state(
            Message.user("read two files"),
            Message.assistant(None, tool_calls=[_call("a"), _call("b")]),
            Message.tool("a", '{"content": "1"}'),
        )

        view = state.build_request_view()

        assert view.early_return is True

    def test_last_batch_with_no_results_returns_early(self) -> None:
        state = _make_state(
            Message.user("go"),
            Message.assistant("working", tool_calls=[_call("a")]),
        )

        assert state.build_request_view().early_return is True

    def test_abandoned_older_batch_keeps_only_answered_calls(self) -> None:
        state = _make_state(
            Message.user("first"),
            Message.assistant(None, tool_calls=[_call("a"), _call("b")]),
            Message.tool("a", "ok"),
            Message.assistant("moving on"),
        )

        view = state.build_request_view()

        assert view.early_return is False
        assistant = view.messages[2]
        assert assistant.tool_calls == (_call("a"),)

    def test_abandoned_batch_with_no_answers_and_no_content_is_dropped(self) -> None:
        state = _make_state(
            Message.user("first"),
            Message.assistant(None, tool_calls=[_call("a")]),
            Message.user("never mind"),
            Message.assistant("ok"),
        )

        view = state.build_request_view()

        roles = [m.role for m in view.messages]
        assert roles == [Role.SYSTEM, Role.USER, Role.USER, Role.ASSISTANT]

    def test_tool_content_is_normalised_to_string(self) -> None:
        state = _make_state(
            Message.user("go"),
            Message.assistant(None, tool_calls=[_call("a")]),
            Message(role=Role.TOOL, content=None, tool_call_id="a"),
        )

        view = state.build_request_view()

        assert view.messages[-1].content == ""

    def test_view_does_not_mutate_history(self) -> None:
        state = _make_state(Message.user("hi"), Message.assistant(None))
        before = state.messages

        state.build_request_view()

        assert state.messages == before


class TestUnsatisfiedCalls:
    """unsatisfied_calls lists the last batch's unanswered calls in order."""

    def test_no_batch(self) -> None:
        assert _make_state(Message.user("hi")).unsatisfied_calls() == []

    def test_partial_batch(self) -> None:
        state = _make_state(
            Message.assistant(None, tool_calls=[_call("a"), _call("b"), _call("c")]),
            Message.tool("b", "ok"),
        )

        assert [c.id for c in state.unsatisfied_calls()] == ["a", "c"]

    def test_last_assistant_batch_reports_index(self) -> None:
        state = _make_state(
            Message.user("hi"),
            Message.assistant(None, tool_calls=[_call("a")]),
        )

        batch = state.last_assistant_batch()

        assert batch is not None
        index, calls = batch
        assert index == 2
        assert calls == (_call("a"),)
