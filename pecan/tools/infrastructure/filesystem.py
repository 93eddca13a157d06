"""Filesystem tools — read_file, write_file and list_dir."""

import asyncio
from pathlib import Path
from typing import Any

from pecan.tools.domain.errors import InvalidToolArgumentsError, ToolExecutionError
from pecan.tools.infrastructure.arguments import require_object, require_str


def _path_schema(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


class ReadFileTool:
    name = "read_file"
    description = "Reads the content of a file."
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {"path": _path_schema("Path to the file.")},
        "required": ["path"],
    }

    async def call(self, arguments: Any) -> dict[str, Any]:
        args = require_object(self.name, arguments)
        path = Path(require_str(self.name, args, "path"))
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ToolExecutionError(name=self.name, reason=str(exc)) from exc
        return {"content": content}


class WriteFileTool:
    name = "write_file"
    description = "Writes content to a file."
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {
            "path": _path_schema("Path to the file."),
            "content": {"type": "string", "description": "Content to write."},
        },
        "required": ["path", "content"],
    }

    async def call(self, arguments: Any) -> dict[str, Any]:
        args = require_object(self.name, arguments)
        path = Path(require_str(self.name, args, "path"))
        content = args.get("content")
        if not isinstance(content, str):
            raise InvalidToolArgumentsError(
                name=self.name, reason="missing 'content'"
            )
        try:
            await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        except OSError as exc:
            raise ToolExecutionError(name=self.name, reason=str(exc)) from exc
        return {"status": "success"}


class ListDirTool:
    name = "list_dir"
    description = "Lists files in a directory."
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {"path": _path_schema("Path to the directory.")},
        "required": ["path"],
    }

    async def call(self, arguments: Any) -> dict[str, Any]:
        args = require_object(self.name, arguments)
        path = Path(require_str(self.name, args, "path"))
        try:
            entries = await asyncio.to_thread(_list_entries, path)
        except OSError as exc:
            raise ToolExecutionError(name=self.name, reason=str(exc)) from exc
        return {"entries": entries}


def _list_entries(path: Path) -> list[dict[str, Any]]:
    return [
        {"name": entry.name, "is_dir": entry.is_dir()}
        for entry in sorted(path.iterdir(), key=lambda p: p.name)
    ]
