"""Capability catalog: the tools a plan may call.

The catalog maps a tool name to a handler plus a human-readable description.
The planner only reads names and descriptions from it and invokes handlers by
name; it never mutates a catalog it was given.
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
import typing as t


ToolHandler = t.Callable[[dict[str, t.Any], t.Any], t.Any]

NO_DESCRIPTION = "No description"


@dataclass(frozen=True)
class ToolEntry:
    """A registered tool."""
    name: str
    handler: ToolHandler
    description: str = ""


class ToolCatalog:
    """Ordered registry of tools, keyed by exact (case-sensitive) name."""

    def __init__(self, entries: t.Iterable[ToolEntry] = ()) -> None:
        self._tools: dict[str, ToolEntry] = {}
        for entry in entries:
            self._tools[entry.name] = entry

    @classmethod
    def from_mapping(
        cls, tools: t.Mapping[str, t.Union[ToolHandler, tuple[ToolHandler, str]]]
    ) -> "ToolCatalog":
        """Build a catalog from ``name -> handler`` or ``name -> (handler, description)``."""
        catalog = cls()
        for name, value in tools.items():
            if isinstance(value, tuple):
                handler, description = value
            else:
                handler, description = value, ""
            catalog.register(name, handler, description)
        return catalog

    @classmethod
    async def from_mcp(cls, server: t.Any) -> "ToolCatalog":
        """Load every tool of a FastMCP server.

        MCP tools take keyword arguments and no context, so each one is wrapped
        in a handler that spreads the parameters and drops the context.
        """
        tools = await server.get_tools()
        catalog = cls()
        for name, tool in tools.items():
            catalog.register(name, _mcp_handler(tool.fn), tool.description or "")
        return catalog

    def register(self, name: str, handler: ToolHandler, description: str = "") -> None:
        self._tools[name] = ToolEntry(name=name, handler=handler, description=description)

    def get(self, name: str) -> t.Optional[ToolEntry]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        """Render the tool listing embedded in the planning prompt."""
        lines = [
            f"{entry.name}: {entry.description.strip() or NO_DESCRIPTION}"
            for entry in self._tools.values()
        ]
        header = f"Available CRM Tools ({len(lines)} total):"
        return "\n".join([header, *lines])

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> t.Iterator[ToolEntry]:
        return iter(list(self._tools.values()))


def _mcp_handler(fn: t.Callable[..., t.Any]) -> ToolHandler:
    async def handler(parameters: dict[str, t.Any], context: t.Any) -> t.Any:
        if inspect.iscoroutinefunction(fn):
            return await fn(**parameters)
        # Synchronous tool function - run in thread pool
        return await asyncio.to_thread(fn, **parameters)

    return handler
