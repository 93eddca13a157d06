"""build_agent — wires a ready-to-run AgentCore from a PecanConfig."""

from pecan.agent.application.agent import AgentCore
from pecan.agent.infrastructure.observer import StructlogAgentObserver
from pecan.approval.domain.gate import ApprovalGate
from pecan.approval.domain.policy import ApprovalPolicy, CommandPolicy
from pecan.backend.infrastructure.factory import ChatBackendFactory
from pecan.backend.infrastructure.observer import StructlogBackendObserver
from pecan.config.domain.config import PecanConfig
from pecan.config.domain.tools import ToolsConfig
from pecan.conversation.domain.state import ConversationState
from pecan.engine.application.turn_engine import TurnEngine
from pecan.engine.infrastructure.observer import StructlogTurnObserver
from pecan.memory.domain.store import MemoryStore
from pecan.tasks.domain.stack import TaskStack
from pecan.tools.domain.registry import ToolRegistry
from pecan.tools.infrastructure.filesystem import (
    ListDirTool,
    ReadFileTool,
    WriteFileTool,
)
from pecan.tools.infrastructure.shell import ShellTool


def approval_policy(tools: ToolsConfig) -> ApprovalPolicy:
    return ApprovalPolicy(
        require_approval=tools.require_approval,
        commands=CommandPolicy(
            allowed_commands=tuple(tools.allowed_commands),
            blocked_commands=tuple(tools.blocked_commands),
        ),
    )


def build_tool_registry(gate: ApprovalGate, tools: ToolsConfig) -> ToolRegistry:
    """Registry holding the built-in tools; shell commands are checked by gate."""
    return ToolRegistry(
        tools=[
            ReadFileTool(),
            WriteFileTool(),
            ListDirTool(),
            ShellTool(guard=gate, timeout_seconds=tools.shell_timeout_seconds),
        ]
    )


def build_agent(config: PecanConfig, memory: MemoryStore | None = None) -> AgentCore:
    """Return an AgentCore on config.default_model with structlog observers.

    Raises:
        BackendTypeNotSupportedError: if the default model's provider is unknown.
    """
    gate = ApprovalGate(policy=approval_policy(config.tools))
    backend_factory = ChatBackendFactory(observer=StructlogBackendObserver())
    backend = backend_factory.create(
        name=config.default_model, config=config.models[config.default_model]
    )
    engine = TurnEngine(
        history=ConversationState(system_prompt=config.system_prompt),
        tools=build_tool_registry(gate=gate, tools=config.tools),
        gate=gate,
        backend=backend,
        generation=config.generation,
        observer=StructlogTurnObserver(),
    )
    return AgentCore(
        config=config,
        engine=engine,
        backend_factory=backend_factory,
        tasks=TaskStack(),
        observer=StructlogAgentObserver(),
        memory=memory,
    )
