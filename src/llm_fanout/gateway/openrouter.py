"""OpenRouter adapter.

OpenRouter exposes an OpenAI-compatible chat completions API in front of many
hosted models, so the request is always ``{model, messages}`` and the answer
is read from ``choices[0].message.content``.
"""

from typing import Any, Dict, Optional, Tuple

from .base import BaseAdapter
from .extraction import CHAT_COMPLETION
from .types import ProviderGroup, ProviderSpec

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterAdapter(BaseAdapter):
    """Adapter for OpenRouter-routed models."""

    group = ProviderGroup.OPENROUTER
    credential_env_var = "OPENROUTER_API_KEY"
    strategies = (CHAT_COMPLETION,)

    def __init__(
        self,
        *args: Any,
        referer: Optional[str] = None,
        title: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self._referer = referer
        self._title = title

    def extra_headers(self, spec: ProviderSpec) -> Dict[str, str]:
        # Optional app attribution headers understood by OpenRouter
        headers = {}
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title
        return headers

    def build_request(self, prompt: str, spec: ProviderSpec) -> Tuple[str, Dict[str, Any]]:
        payload = {
            "model": spec.model_id,
            "messages": [{"role": "user", "content": prompt}],
        }
        return spec.endpoint or OPENROUTER_API_URL, payload
