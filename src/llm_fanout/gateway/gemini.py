"""Google Gemini adapter.

Gemini takes ``contents -> parts -> text`` and answers with
``candidates -> content -> parts -> text``. The key travels either in the
``x-goog-api-key`` header or as the ``key`` query parameter.
"""

from typing import Any, Dict, Tuple

from .base import BaseAdapter
from .extraction import GEMINI_ALL_PARTS, GEMINI_FIRST_PART
from .types import ProviderGroup, ProviderSpec

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
GENERATE_SUFFIX = ":generateContent"


class GeminiAdapter(BaseAdapter):
    """Adapter for the Gemini generateContent API."""

    group = ProviderGroup.GEMINI
    credential_env_var = "GEMINI_API_KEY"
    strategies = (GEMINI_FIRST_PART, GEMINI_ALL_PARTS)
    key_header = "x-goog-api-key"

    def build_request(self, prompt: str, spec: ProviderSpec) -> Tuple[str, Dict[str, Any]]:
        url = (spec.endpoint or f"{GEMINI_API_BASE}/{spec.model_id}").rstrip("/")
        if not url.endswith(GENERATE_SUFFIX):
            url += GENERATE_SUFFIX
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        return url, payload
