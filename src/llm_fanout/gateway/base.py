"""Base provider adapter.

An adapter turns ``(prompt, ProviderSpec)`` into plain text for one vendor
family, or raises ``AdapterError``. Subclasses only describe the vendor's
request body and response shape; credential checks, auth placement, timeouts
and HTTP status handling live here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import httpx

from .errors import AdapterError, ErrorKind
from .extraction import DEFAULT_MAX_DETAIL_CHARS, ExtractionStrategy, cap, extract_text
from .types import AuthMode, ProviderGroup, ProviderSpec

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class BaseAdapter(ABC):
    """Common plumbing for all vendor adapters.

    Class attributes a subclass must set:
        group: Vendor family this adapter serves.
        credential_env_var: Canonical env var holding the group's secret.
        strategies: Ordered text-extraction strategies for the vendor's responses.
    """

    group: ProviderGroup
    credential_env_var: str
    strategies: Tuple[ExtractionStrategy, ...] = ()
    key_header: str = "x-api-key"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_detail_chars: int = DEFAULT_MAX_DETAIL_CHARS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            api_key: Secret for this provider group. None means not configured.
            timeout: Upper bound in seconds for one provider call.
            max_detail_chars: Cap for raw bodies echoed in error details.
            transport: Optional httpx transport (tests inject MockTransport).
        """
        self._api_key = api_key or None
        self._timeout = timeout
        self._max_detail_chars = max_detail_chars
        self._transport = transport

    @property
    def has_credential(self) -> bool:
        return self._api_key is not None

    @abstractmethod
    def build_request(self, prompt: str, spec: ProviderSpec) -> Tuple[str, Dict[str, Any]]:
        """Return the URL and JSON body for one call."""

    def extra_headers(self, spec: ProviderSpec) -> Dict[str, str]:
        return {}

    def _auth(self, spec: ProviderSpec) -> Tuple[Dict[str, str], Dict[str, str]]:
        """Place the credential according to the provider's auth mode.

        Returns:
            Tuple of (headers, query params).
        """
        if spec.auth_mode == AuthMode.QUERY_PARAM:
            return {}, {"key": self._api_key or ""}
        if spec.auth_mode == AuthMode.HEADER_KEY:
            return {self.key_header: self._api_key or ""}, {}
        return {"Authorization": f"Bearer {self._api_key}"}, {}

    async def _post(
        self,
        url: str,
        headers: Dict[str, str],
        params: Dict[str, str],
        payload: Dict[str, Any],
    ) -> httpx.Response:
        """Send the HTTP request. Separate so tests can mock the network."""
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.post(url, headers=headers, params=params or None, json=payload)

    def _error(self, spec: ProviderSpec, kind: str, detail: str) -> AdapterError:
        return AdapterError(spec.id, kind, cap(detail, self._max_detail_chars))

    async def invoke(self, prompt: str, spec: ProviderSpec) -> str:
        """Call the provider and return its normalized text.

        Args:
            prompt: User prompt.
            spec: Registry entry for the provider to call.

        Returns:
            Non-blank text produced by the model.

        Raises:
            AdapterError: MissingCredential, TransportError, UpstreamError or
                UnparseableResponse.
        """
        if not self.has_credential:
            raise self._error(
                spec,
                ErrorKind.MISSING_CREDENTIAL,
                f"{self.credential_env_var} is not configured",
            )

        url, payload = self.build_request(prompt, spec)
        headers, params = self._auth(spec)
        headers = {"Content-Type": "application/json", **self.extra_headers(spec), **headers}

        logger.debug(f"POST {url} for {spec.id} ({spec.model_id})")

        try:
            response = await asyncio.wait_for(
                self._post(url, headers, params, payload), timeout=self._timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise self._error(spec, ErrorKind.TRANSPORT_ERROR, f"Timeout after {self._timeout}s")
        except httpx.HTTPError as e:
            raise self._error(spec, ErrorKind.TRANSPORT_ERROR, f"{type(e).__name__}: {e}")

        if not 200 <= response.status_code < 300:
            raise self._error(
                spec,
                ErrorKind.UPSTREAM_ERROR,
                f"HTTP {response.status_code}: {response.text}",
            )

        try:
            data = response.json()
        except ValueError:
            raise self._error(
                spec,
                ErrorKind.UNPARSEABLE_RESPONSE,
                f"Response is not JSON: {response.text}",
            )

        return extract_text(data, self.strategies, spec.id, self._max_detail_chars)
