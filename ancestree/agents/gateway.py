"""AI Gateway - request/response facade over the generative model.

Each request walks a small state machine:

    IDLE -> REQUESTING -> SUCCESS
                       -> RETRYING -> REQUESTING ...
                       -> FAILED

An attempt fails when the model call fails or its output does not match the
declared shape. When the retry policy runs out, a GatewayError with a generic
message is raised and no partial output is returned.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from pydantic import TypeAdapter

from ancestree.agents.llm_client import parse_json_text
from ancestree.agents.retry import RetriesExhausted, RetryPolicy
from ancestree.errors import GatewayError

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    async def generate(self, prompt: str, system: Optional[str] = None) -> dict: ...


class GatewayState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class CallTrace:
    """States one request went through."""
    name: str
    states: list[GatewayState] = field(default_factory=lambda: [GatewayState.IDLE])
    error: Optional[str] = None

    @property
    def state(self) -> GatewayState:
        return self.states[-1]

    @property
    def attempts(self) -> int:
        return self.states.count(GatewayState.REQUESTING)


class AttemptFailed(Exception):
    """A single model call failed."""


def truncate(text: Optional[str], limit: int) -> str:
    """Cap text at `limit` characters."""
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit]


class AIGateway:
    """Forward prompts to a model client with retry and shape parsing."""

    def __init__(
        self,
        client: ModelClient,
        policy: Optional[RetryPolicy] = None,
        max_dna_chars: int = 100_000,
        max_comparison_profiles: int = 50,
    ):
        self.client = client
        self.policy = policy or RetryPolicy()
        self.max_dna_chars = max_dna_chars
        self.max_comparison_profiles = max_comparison_profiles
        # Latest trace per request name. `last_trace` is whichever request
        # started most recently, so concurrent callers should read `traces`.
        self.traces: dict[str, CallTrace] = {}
        self.last_trace: Optional[CallTrace] = None

    def cap_dna(self, dna_data: Optional[str]) -> str:
        return truncate(dna_data, self.max_dna_chars)

    def cap_comparisons(self, others: Optional[list[str]]) -> list[str]:
        return [self.cap_dna(d) for d in (others or [])[: self.max_comparison_profiles]]

    async def request(
        self,
        name: str,
        prompt: str,
        output_type: Any = str,
        system: Optional[str] = None,
    ) -> Any:
        """Run one request. `output_type` is str for free text or any
        pydantic-validatable type for JSON output."""
        trace = CallTrace(name=name)
        self.traces[name] = trace
        self.last_trace = trace
        adapter = None if output_type is str else TypeAdapter(output_type)

        async def attempt():
            trace.states.append(GatewayState.REQUESTING)
            result = await self.client.generate(prompt, system=system)
            if not result.get("success"):
                raise AttemptFailed(result.get("error") or "model call failed")
            text = result.get("text") or ""
            if adapter is None:
                if not text.strip():
                    raise AttemptFailed("empty response")
                return text.strip()
            return adapter.validate_python(parse_json_text(text))

        def on_retry(attempt_no: int, error: BaseException, delay: float):
            trace.states.append(GatewayState.RETRYING)
            logger.warning("[%s] attempt %d failed: %s", name, attempt_no, error)

        try:
            output = await self.policy.run(
                attempt,
                retry_on=(AttemptFailed, ValueError),
                on_retry=on_retry,
            )
        except RetriesExhausted as e:
            trace.states.append(GatewayState.FAILED)
            trace.error = str(e.last_error)
            logger.error("[%s] failed after %d attempt(s): %s", name, e.attempts, e.last_error)
            raise GatewayError(attempts=e.attempts, last_error=str(e.last_error)) from e

        trace.states.append(GatewayState.SUCCESS)
        logger.info("[%s] succeeded after %d attempt(s)", name, trace.attempts)
        return output
