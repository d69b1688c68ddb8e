"""Plan-generation oracle: a text completion service constrained to JSON."""
from __future__ import annotations

from dataclasses import dataclass
import typing as t

from openai import AsyncOpenAI

from planner import config


@dataclass(frozen=True)
class OracleRequest:
    """One completion request.

    Attributes:
        system: System instruction.
        prompt: Fully rendered user prompt.
        temperature: Randomness knob; planning keeps this low.
        json_object: Ask the model to answer with exactly one JSON object.
    """
    system: str
    prompt: str
    temperature: float = 0.1
    json_object: bool = True


class PlanOracle(t.Protocol):
    async def complete(self, request: OracleRequest) -> str: ...


class OpenAIPlanOracle:
    """Oracle backed by OpenAI chat completions in JSON mode."""

    def __init__(self, model: str = "gpt-4o-mini", client: t.Optional[AsyncOpenAI] = None) -> None:
        self.model = model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Created lazily so constructing the oracle does not require an API key
        if self._client is None:
            self._client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
        return self._client

    async def complete(self, request: OracleRequest) -> str:
        kwargs: dict[str, t.Any] = {}
        if request.json_object:
            kwargs["response_format"] = {"type": "json_object"}

        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": request.system},
                {"role": "user", "content": request.prompt},
            ],
            temperature=request.temperature,
            **kwargs,
        )
        return completion.choices[0].message.content or ""
