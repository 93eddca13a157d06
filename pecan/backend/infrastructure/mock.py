"""MockChatBackend — canned replies for offline runs."""

from pecan.backend.domain.backend import ChatRequest, ChatResponse


class MockChatBackend:
    """Answers every request with the same text and never calls tools."""

    def __init__(self, name: str = "mock", reply: str = "Mock response") -> None:
        self._name = name
        self._reply = reply

    @property
    def name(self) -> str:
        return self._name

    async def complete(self, request: ChatRequest) -> ChatResponse:
        return ChatResponse(content=self._reply)
