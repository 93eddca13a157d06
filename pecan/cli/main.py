"""CLI entrypoint for pecan — typer app with `chat`, `search` and `compact`."""

import asyncio
import sys
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import structlog
import typer
from rich.console import Console
from rich.table import Table

from pecan.agent.infrastructure.bootstrap import build_agent
from pecan.cli.repl import ChatRepl
from pecan.config.domain.config import PecanConfig
from pecan.config.domain.model import ModelConfig
from pecan.config.infrastructure.observer import StructlogConfigObserver
from pecan.config.infrastructure.yaml_loader import (
    DEFAULT_CONFIG_PATH,
    YamlConfigLoader,
)
from pecan.core.errors import PecanError
from pecan.memory.infrastructure.observer import StructlogMemoryObserver
from pecan.memory.infrastructure.store import SqliteMemoryStore
from pecan.observability.log_buffer import LogBuffer

app = typer.Typer(add_completion=False)

CLI_OVERRIDE_MODEL = "cli-override"

_LOG_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40, "critical": 50}


def _level(name: str) -> int:
    try:
        return _LOG_LEVELS[name.lower()]
    except KeyError:
        levels = ", ".join(_LOG_LEVELS)
        typer.echo(f"Invalid log level: {name!r}. Must be one of {levels}.")
        raise typer.Exit(code=1) from None


def _echo_threshold(min_level: int) -> structlog.types.Processor:
    """Drop events below min_level after they reach the log buffer."""

    def processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        level = _LOG_LEVELS.get(str(event_dict.get("level", method_name)), 0)
        if level < min_level:
            raise structlog.DropEvent
        return event_dict

    return processor


def _configure_structlog(
    log_format: str,
    log_level: str,
    log_buffer: LogBuffer,
    echo_level: str | None = None,
) -> None:
    """Configure structlog based on the requested format and level.

    Every event at log_level or above lands in log_buffer; only events at
    echo_level or above are printed to stderr.
    """
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    min_level = _level(log_level)
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        log_buffer.processor,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if echo_level is not None:
        processors.append(_echo_threshold(_level(echo_level)))
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def apply_overrides(config: PecanConfig, mock: bool, url: str | None) -> PecanConfig:
    """Apply --url and --mock; --mock wins when both are given."""
    models = dict(config.models)
    default_model = config.default_model
    if url:
        models[CLI_OVERRIDE_MODEL] = ModelConfig(
            provider="llama.cpp", url=url, description="llama.cpp server from --url"
        )
        default_model = CLI_OVERRIDE_MODEL
    if mock:
        models.setdefault(
            "mock", ModelConfig(provider="mock", description="Mock model for testing")
        )
        default_model = "mock"
    return config.model_copy(update={"models": models, "default_model": default_model})


def _load_config(config_path: Path) -> PecanConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    return loader.load_or_create(path=config_path)


def _open_memory(config: PecanConfig, memory_path: Path | None) -> SqliteMemoryStore:
    return SqliteMemoryStore(
        base_path=memory_path or config.memory.base_path,
        observer=StructlogMemoryObserver(),
    )


_CONFIG_OPTION = typer.Option(
    DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to config YAML"
)
_MEMORY_OPTION = typer.Option(
    None, "--memory", help="Memory base path; <path>.jsonl and <path>.db"
)
_LOG_FORMAT_OPTION = typer.Option(
    "console", "--log-format", help="Log format: 'console' or 'json'"
)
_LOG_LEVEL_OPTION = typer.Option("info", "--log-level", help="Minimum log level")


@app.command()
def chat(
    config_path: Path = _CONFIG_OPTION,
    mock: bool = typer.Option(False, "--mock", help="Use the mock model"),
    url: str | None = typer.Option(
        None, "--url", help="llama.cpp server URL (registers a 'cli-override' model)"
    ),
    memory_path: Path | None = _MEMORY_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
    log_level: str = _LOG_LEVEL_OPTION,
) -> None:
    """Start an interactive chat session."""
    log_buffer = LogBuffer()
    try:
        _configure_structlog(
            log_format=log_format,
            log_level=log_level,
            log_buffer=log_buffer,
            echo_level="warning",
        )
        config = apply_overrides(_load_config(config_path), mock=mock, url=url)
        memory = _open_memory(config, memory_path) if config.memory.enabled else None
        try:
            agent = build_agent(config=config, memory=memory)
            repl = ChatRepl(agent=agent, console=Console(), log_buffer=log_buffer)
            asyncio.run(repl.run())
        finally:
            if memory is not None:
                memory.close()

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("\nGoodbye.")
    except PecanError as exc:
        typer.echo(f"Error: {exc}")
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Full-text query; every term must match"),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum number of results"),
    config_path: Path = _CONFIG_OPTION,
    memory_path: Path | None = _MEMORY_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
    log_level: str = typer.Option("warning", "--log-level", help="Minimum log level"),
) -> None:
    """Search episodic memory."""
    try:
        _configure_structlog(
            log_format=log_format, log_level=log_level, log_buffer=LogBuffer()
        )
        config = _load_config(config_path)
        with _open_memory(config, memory_path) as store:
            records = store.search(query, limit)

        if not records:
            typer.echo("No matching memories.")
            return
        table = Table("Time", "Summary", "Content")
        for record in records:
            table.add_row(
                record.timestamp.strftime("%Y-%m-%d %H:%M"),
                record.summary,
                record.content,
            )
        Console().print(table)

    except PecanError as exc:
        typer.echo(f"Error: {exc}")
        sys.exit(1)


@app.command()
def compact(
    config_path: Path = _CONFIG_OPTION,
    memory_path: Path | None = _MEMORY_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
    log_level: str = _LOG_LEVEL_OPTION,
) -> None:
    """Rewrite the memory log so it holds only live records."""
    try:
        _configure_structlog(
            log_format=log_format, log_level=log_level, log_buffer=LogBuffer()
        )
        config = _load_config(config_path)
        with _open_memory(config, memory_path) as store:
            count = store.compact()
            log_path = store.log_path
        typer.echo(f"Compacted {count} records into {log_path}")

    except PecanError as exc:
        typer.echo(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    app()
