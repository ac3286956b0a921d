"""Token usage and USD cost of the model calls behind each import.

Every recorded call carries the UsageScope it ran in: the import it served
(request_id, user_id), the guarded-extraction attempt that produced it, the
model that answered and the credits the user was charged. Scopes nest
through a context variable, so the workflow sets the import fields and
guarded_extract adds the attempt fields without threading them through the
client:

    with usage_scope(request_id="req-1", user_id="user-1"):
        ...  # every LLMClient call recorded here is attributed to req-1
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Iterator

from litellm import cost_per_token

logger = logging.getLogger(__name__)

_ROUTING_PREFIX = "openrouter/"


@dataclass(frozen=True)
class UsageScope:
    """Attribution attached to every call recorded inside the scope."""

    request_id: str | None = None
    user_id: str | None = None
    file_category: str = ""
    attempt: int = 0
    fallback: bool = False
    credit_cost: int = 0


_current_scope: ContextVar[UsageScope] = ContextVar("docimport_usage_scope", default=UsageScope())


def current_usage_scope() -> UsageScope:
    return _current_scope.get()


@contextmanager
def usage_scope(**fields: Any) -> Iterator[UsageScope]:
    """Narrow the current scope with the given fields for the block."""
    scope = replace(_current_scope.get(), **fields)
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)


def price_call(model: str, prompt_tokens: int, completion_tokens: int) -> float | None:
    """USD price from litellm's model map, or None if the model is not priced.

    The routed name is tried first, then the name without "openrouter/".
    """
    candidates = [model]
    if model.startswith(_ROUTING_PREFIX):
        candidates.append(model[len(_ROUTING_PREFIX):])

    for name in candidates:
        try:
            prompt_usd, completion_usd = cost_per_token(
                model=name, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens
            )
        except Exception:
            continue
        return prompt_usd + completion_usd
    return None


@dataclass(frozen=True)
class ModelCall:
    model: str
    prompt_tokens: int
    completion_tokens: int
    scope: UsageScope
    cost_usd: float | None = None  # None when litellm has no price

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class ImportUsage:
    """Calls, tokens, dollars and credits of one import."""

    request_id: str
    user_id: str | None = None
    file_category: str = ""
    credit_cost: int = 0
    calls: int = 0
    answered_on_attempt: int = 0  # 1-based attempt of the last answered call
    used_fallback: bool = False
    models: list[str] = field(default_factory=list)
    total_tokens: int = 0
    cost_usd: float = 0.0
    unpriced_calls: int = 0


class CostTracker:
    """Collects ModelCalls and reports them per import."""

    def __init__(self):
        self.calls: list[ModelCall] = []

    def record(self, model: str, usage: Any, category: str = "") -> ModelCall | None:
        """Record the usage object of a litellm response in the current scope.

        Responses without usage are not recorded.
        """
        if usage is None:
            return None

        scope = current_usage_scope()
        if category and not scope.file_category:
            scope = replace(scope, file_category=category)

        prompt_tokens = getattr(usage, "prompt_tokens", 0) or 0
        completion_tokens = getattr(usage, "completion_tokens", 0) or 0
        call = ModelCall(
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            scope=scope,
            cost_usd=price_call(model, prompt_tokens, completion_tokens),
        )
        if call.cost_usd is None:
            logger.debug(f"No litellm price for '{model}', call counted without cost")
        self.calls.append(call)
        return call

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def total_tokens(self) -> int:
        return sum(c.total_tokens for c in self.calls)

    @property
    def total_cost(self) -> float:
        return sum(c.cost_usd or 0.0 for c in self.calls)

    def for_request(self, request_id: str) -> list[ModelCall]:
        return [c for c in self.calls if c.scope.request_id == request_id]

    def by_import(self) -> dict[str, ImportUsage]:
        """Usage per request_id. Calls outside any import go under "-"."""
        imports: dict[str, ImportUsage] = {}
        for call in self.calls:
            scope = call.scope
            key = scope.request_id or "-"
            entry = imports.get(key)
            if entry is None:
                entry = imports[key] = ImportUsage(
                    request_id=key, user_id=scope.user_id, file_category=scope.file_category
                )
            entry.calls += 1
            entry.credit_cost = max(entry.credit_cost, scope.credit_cost)
            entry.answered_on_attempt = max(entry.answered_on_attempt, scope.attempt + 1)
            entry.used_fallback = entry.used_fallback or scope.fallback
            if call.model not in entry.models:
                entry.models.append(call.model)
            entry.total_tokens += call.total_tokens
            if call.cost_usd is None:
                entry.unpriced_calls += 1
            else:
                entry.cost_usd += call.cost_usd
        return imports

    def summary(self) -> str:
        """One line per import: attempts, credits charged, tokens and dollars."""
        lines = [f"Model usage: {self.call_count} calls, {self.total_tokens:,} tokens, ${self.total_cost:.4f}"]
        for usage in self.by_import().values():
            who = ", ".join(p for p in (usage.user_id, usage.file_category) if p)
            line = (
                f"  {usage.request_id}" + (f" ({who})" if who else "")
                + f": attempt {usage.answered_on_attempt}, {usage.credit_cost} credits,"
                + f" {usage.total_tokens:,} tokens, ${usage.cost_usd:.4f}"
                + f" via {' -> '.join(usage.models)}"
            )
            if usage.unpriced_calls:
                line += f" ({usage.unpriced_calls} unpriced)"
            lines.append(line)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "calls": self.call_count,
            "total_tokens": self.total_tokens,
            "cost_usd": round(self.total_cost, 6),
            "imports": {key: asdict(usage) for key, usage in self.by_import().items()},
        }
