# -*- coding: utf-8 -*-
"""Environment-driven settings for the planner, CLI and service."""
from __future__ import annotations

import os
from dataclasses import dataclass
import typing as t


def _env_float(name: str, default: t.Optional[float]) -> t.Optional[float]:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    return float(value)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
PLANNER_MODEL = os.getenv("PLANNER_MODEL", "gpt-4o-mini")
PLANNER_TEMPERATURE = _env_float("PLANNER_TEMPERATURE", 0.1)
# Timeout settings (in seconds)
PLANNER_ORACLE_TIMEOUT = _env_float("PLANNER_ORACLE_TIMEOUT", 60.0)
PLANNER_STEP_TIMEOUT = _env_float("PLANNER_STEP_TIMEOUT", None)
PLANNER_MAX_ATTEMPTS = int(os.getenv("PLANNER_MAX_ATTEMPTS", "3"))
PLANNER_BLOCK_UNKNOWN_TOOLS = _env_flag("PLANNER_BLOCK_UNKNOWN_TOOLS")
PLANNER_LOG_LEVEL = os.getenv("PLANNER_LOG_LEVEL", "INFO").upper()
PLANNER_SERVICE_PORT = int(os.getenv("PLANNER_SERVICE_PORT", "8010"))


@dataclass(frozen=True)
class PlannerSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.1
    oracle_timeout: t.Optional[float] = 60.0
    step_timeout: t.Optional[float] = None
    max_attempts: int = 3
    block_unknown_tools: bool = False

    @classmethod
    def from_env(cls) -> "PlannerSettings":
        return cls(
            model=PLANNER_MODEL,
            temperature=PLANNER_TEMPERATURE if PLANNER_TEMPERATURE is not None else 0.1,
            oracle_timeout=PLANNER_ORACLE_TIMEOUT,
            step_timeout=PLANNER_STEP_TIMEOUT,
            max_attempts=PLANNER_MAX_ATTEMPTS,
            block_unknown_tools=PLANNER_BLOCK_UNKNOWN_TOOLS,
        )
