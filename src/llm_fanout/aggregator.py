"""Merge per-provider outcomes into one response.

Aggregation is a pure function of the outcome sequence: the same input always
produces an identical result (no clock, no randomness).
"""

from typing import Optional, Sequence

from llm_fanout.gateway.types import AggregateResult, InvocationOutcome

ANSWER_SEPARATOR = "\n\n"
SUMMARY_DELIMITER = " | "
DEFAULT_PREVIEW_CHARS = 300
EMPTY_SUMMARY = "No providers invoked"


def format_label(provider_id: str) -> str:
    return f"--- {provider_id} ---"


class ResultAggregator:
    """Builds the combined answer and the per-provider summary line."""

    def __init__(self, preview_chars: int = DEFAULT_PREVIEW_CHARS):
        self._preview_chars = preview_chars

    def combine_answer(self, outcomes: Sequence[InvocationOutcome]) -> Optional[str]:
        sections = [f"{format_label(o.provider_id)}\n{o.text}" for o in outcomes if o.ok]
        return ANSWER_SEPARATOR.join(sections) if sections else None

    def summarize(self, outcomes: Sequence[InvocationOutcome]) -> str:
        lines = []
        for o in outcomes:
            if o.ok:
                lines.append(f"{o.provider_id}: {(o.text or '')[: self._preview_chars]}")
            else:
                lines.append(f"{o.provider_id}: ERROR")
        return SUMMARY_DELIMITER.join(lines) or EMPTY_SUMMARY

    def aggregate(self, outcomes: Sequence[InvocationOutcome]) -> AggregateResult:
        """Merge outcomes in input order.

        Args:
            outcomes: Outcomes from the dispatcher, in provider order.

        Returns:
            AggregateResult whose combined_answer is None iff no outcome succeeded.
        """
        return AggregateResult(
            outcomes=tuple(outcomes),
            combined_answer=self.combine_answer(outcomes),
            fallback_summary=self.summarize(outcomes),
        )
