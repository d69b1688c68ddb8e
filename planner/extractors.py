"""Pluggable rules for pulling a parameter value out of an earlier step's result.

A ``from_step_<id>`` parameter is filled from the referenced step's result.
By default the whole result is substituted; a registered extractor can pick a
specific field instead. Rules are keyed by parameter name, optionally narrowed
to a single tool.
"""
from __future__ import annotations

import typing as t

from planner.models import StepOutputRef

Extractor = t.Callable[[t.Any], t.Any]


class ExtractorRegistry:
    """Extraction rules, looked up by ``(tool, parameter)`` then ``parameter``."""

    def __init__(self) -> None:
        self._by_parameter: dict[str, Extractor] = {}
        self._by_tool: dict[tuple[str, str], Extractor] = {}

    def register(self, parameter: str, fn: Extractor, tool: t.Optional[str] = None) -> None:
        if tool is None:
            self._by_parameter[parameter] = fn
        else:
            self._by_tool[(tool, parameter)] = fn

    def lookup(self, parameter: str, tool: str = "") -> t.Optional[Extractor]:
        return self._by_tool.get((tool, parameter)) or self._by_parameter.get(parameter)

    def extract(self, result: t.Any, ref: StepOutputRef, tool: str = "") -> t.Any:
        """Value to substitute for ``ref``; the raw result when no rule matches."""
        fn = self.lookup(ref.hint, tool)
        if fn is None:
            return result
        value = fn(result)
        return result if value is None else value


def field_path(value: t.Any, *path: t.Union[str, int]) -> t.Any:
    """Walk ``path`` through mappings, sequences and attributes; None on any miss."""
    for part in path:
        if value is None:
            return None
        if isinstance(part, int):
            if isinstance(value, (list, tuple)) and -len(value) <= part < len(value):
                value = value[part]
            else:
                return None
        elif isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def first_of(*paths: tuple[t.Union[str, int], ...]) -> Extractor:
    """Extractor trying each path in order, returning the first hit."""
    def extract(result: t.Any) -> t.Any:
        for path in paths:
            value = field_path(result, *path)
            if value is not None:
                return value
        return None

    return extract


def default_extractors() -> ExtractorRegistry:
    registry = ExtractorRegistry()
    # global_search returns {"clients": [...]}; lookups return {"data": {"match": {...}}}
    registry.register("client_id", first_of(("clients", 0, "id"), ("data", "match", "id")))
    return registry
