"""Gateway types for the LLM fan-out service.

This module defines the provider registry entries and the per-provider
outcome types that flow from the dispatcher into the aggregator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ProviderGroup(str, Enum):
    """Upstream vendor family. One credential per group."""

    HUGGINGFACE = "huggingface"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"


class AuthMode(str, Enum):
    """How the credential is attached to the upstream request."""

    BEARER_HEADER = "bearer_header"  # Authorization: Bearer <key>
    HEADER_KEY = "header_key"  # e.g. x-goog-api-key: <key>
    QUERY_PARAM = "query_param"  # ?key=<key>


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ProviderSpec:
    """One upstream vendor/model combination.

    Built once from configuration at process start and never mutated.
    """

    id: str
    group: ProviderGroup
    model_id: str
    endpoint: str
    auth_mode: AuthMode = AuthMode.BEARER_HEADER


@dataclass(frozen=True)
class InvocationOutcome:
    """Result of one provider call within a fan-out.

    Exactly one of ``text`` (success) or ``error_message`` (failure) is set.
    """

    provider_id: str
    status: OutcomeStatus
    text: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    latency_ms: Optional[int] = None

    @classmethod
    def success(
        cls, provider_id: str, text: str, latency_ms: Optional[int] = None
    ) -> "InvocationOutcome":
        return cls(
            provider_id=provider_id,
            status=OutcomeStatus.SUCCESS,
            text=text,
            latency_ms=latency_ms,
        )

    @classmethod
    def failure(
        cls,
        provider_id: str,
        kind: str,
        message: str,
        latency_ms: Optional[int] = None,
    ) -> "InvocationOutcome":
        return cls(
            provider_id=provider_id,
            status=OutcomeStatus.FAILURE,
            error_kind=kind,
            error_message=message,
            latency_ms=latency_ms,
        )

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def to_result_entry(self) -> Dict[str, str]:
        """Render the per-provider entry of the HTTP ``results`` array."""
        if self.ok:
            return {"model": self.provider_id, "output": self.text or ""}
        return {
            "model": self.provider_id,
            "error": f"{self.error_kind}: {self.error_message}",
        }


@dataclass(frozen=True)
class AggregateResult:
    """Merged view of every outcome of one fan-out.

    Attributes:
        outcomes: Outcomes in the same order as the providers were given.
        combined_answer: Labeled concatenation of successful texts, or None
            when every provider failed.
        fallback_summary: One short status line per provider. Never empty.
    """

    outcomes: Tuple[InvocationOutcome, ...]
    combined_answer: Optional[str]
    fallback_summary: str

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    def to_payload(self, prompt: str) -> Dict[str, Any]:
        """Render the HTTP response body for this result."""
        return {
            "prompt": prompt,
            "results": [o.to_result_entry() for o in self.outcomes],
            "combinedAnswer": self.combined_answer,
            "combinedFallback": self.fallback_summary,
        }
