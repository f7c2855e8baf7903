"""Named text-extraction strategies for vendor response payloads.

Each adapter declares an ordered tuple of strategies. ``extract_text`` tries
them in order and the first one that yields a non-blank string wins.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .errors import AdapterError, ErrorKind

DEFAULT_MAX_DETAIL_CHARS = 2000


@dataclass(frozen=True)
class ExtractionStrategy:
    """A named path into a vendor response."""

    name: str
    extract: Callable[[Any], Optional[str]]

    def __call__(self, payload: Any) -> Optional[str]:
        try:
            value = self.extract(payload)
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        if isinstance(value, str) and value.strip():
            return value
        return None


def _chat_completion(payload: Any) -> Optional[str]:
    return payload["choices"][0]["message"]["content"]


def _generated_text_list(payload: Any) -> Optional[str]:
    if not isinstance(payload, list):
        return None
    return payload[0]["generated_text"]


def _generated_text_object(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    return payload["generated_text"]


def _gemini_first_part(payload: Any) -> Optional[str]:
    return payload["candidates"][0]["content"]["parts"][0]["text"]


def _gemini_all_parts(payload: Any) -> Optional[str]:
    parts = payload["candidates"][0]["content"]["parts"]
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


CHAT_COMPLETION = ExtractionStrategy("chat_completion", _chat_completion)
GENERATED_TEXT_LIST = ExtractionStrategy("generated_text_list", _generated_text_list)
GENERATED_TEXT_OBJECT = ExtractionStrategy("generated_text_object", _generated_text_object)
GEMINI_FIRST_PART = ExtractionStrategy("gemini_first_part", _gemini_first_part)
GEMINI_ALL_PARTS = ExtractionStrategy("gemini_all_parts", _gemini_all_parts)


def cap(text: str, limit: int = DEFAULT_MAX_DETAIL_CHARS) -> str:
    """Truncate diagnostic text to at most ``limit`` characters."""
    return text[:limit]


def stringify(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(payload)


def extract_text(
    payload: Any,
    strategies: Sequence[ExtractionStrategy],
    provider_id: str,
    max_detail_chars: int = DEFAULT_MAX_DETAIL_CHARS,
) -> str:
    """Return the text of the first matching strategy.

    Args:
        payload: Decoded JSON body of a 2xx vendor response.
        strategies: Strategies in priority order.
        provider_id: Used to tag the error when nothing matches.
        max_detail_chars: Cap for the raw payload echoed in the error detail.

    Returns:
        The extracted, non-blank text.

    Raises:
        AdapterError: kind UnparseableResponse when no strategy matches.
    """
    for strategy in strategies:
        text = strategy(payload)
        if text is not None:
            return text

    tried = ", ".join(s.name for s in strategies)
    raise AdapterError(
        provider_id,
        ErrorKind.UNPARSEABLE_RESPONSE,
        f"No text found (tried {tried}): {cap(stringify(payload), max_detail_chars)}",
    )
