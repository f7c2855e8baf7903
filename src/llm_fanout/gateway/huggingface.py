"""Hugging Face inference adapter.

Supports both the OpenAI-compatible router (``.../chat/completions``) and the
classic per-model inference endpoint, which takes ``inputs`` and answers with
``generated_text`` either as a list or a bare object.
"""

from typing import Any, Dict, Tuple

from .base import BaseAdapter
from .extraction import CHAT_COMPLETION, GENERATED_TEXT_LIST, GENERATED_TEXT_OBJECT
from .types import ProviderGroup, ProviderSpec

HF_ROUTER_URL = "https://router.huggingface.co/v1/chat/completions"
HF_INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"


class HuggingFaceAdapter(BaseAdapter):
    """Adapter for Hugging-Face-style inference endpoints."""

    group = ProviderGroup.HUGGINGFACE
    credential_env_var = "HF_API_KEY"
    strategies = (CHAT_COMPLETION, GENERATED_TEXT_LIST, GENERATED_TEXT_OBJECT)

    def __init__(self, *args: Any, max_tokens: int = 512, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._max_tokens = max_tokens

    @staticmethod
    def is_chat_endpoint(endpoint: str) -> bool:
        return endpoint.rstrip("/").endswith("/chat/completions")

    def build_request(self, prompt: str, spec: ProviderSpec) -> Tuple[str, Dict[str, Any]]:
        url = spec.endpoint.format(model=spec.model_id)
        if self.is_chat_endpoint(url):
            payload: Dict[str, Any] = {
                "model": spec.model_id,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": self._max_tokens,
            }
        else:
            payload = {
                "inputs": prompt,
                "parameters": {
                    "max_new_tokens": self._max_tokens,
                    "return_full_text": False,
                },
            }
        return url, payload
