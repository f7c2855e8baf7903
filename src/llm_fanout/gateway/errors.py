"""Error taxonomy for the LLM fan-out service.

Two families live here:

- ``AdapterError``: raised by a provider adapter for one provider call. The
  dispatcher converts every one of these into a Failure outcome, so they never
  escape a fan-out.
- ``GatewayError``: request-level failures raised before any provider call
  (or for unexpected faults). Each carries the HTTP status and JSON payload
  the server returns.
"""

from typing import Any, Dict, List, Optional


class ErrorKind:
    """Per-provider failure kinds."""

    MISSING_CREDENTIAL = "MissingCredential"
    UNPARSEABLE_RESPONSE = "UnparseableResponse"
    UPSTREAM_ERROR = "UpstreamError"
    TRANSPORT_ERROR = "TransportError"
    INTERNAL_FAULT = "InternalFault"


class AdapterError(Exception):
    """A single provider call failed.

    Args:
        provider_id: Registry id of the provider that failed.
        kind: One of the ErrorKind values.
        detail: Human-readable diagnostic, already size-capped by the adapter.
    """

    def __init__(self, provider_id: str, kind: str, detail: str):
        super().__init__(f"{provider_id}: {kind}: {detail}")
        self.provider_id = provider_id
        self.kind = kind
        self.detail = detail


class GatewayError(Exception):
    """Base class for request-level errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidRequest(GatewayError):
    """The request body is not a usable JSON object."""

    status_code = 400


class EmptyPrompt(GatewayError):
    """The prompt is absent or blank."""

    status_code = 400

    def __init__(self, message: str = "Missing 'prompt' (or 'message') in JSON body."):
        super().__init__(message)


class UnknownProvider(GatewayError):
    """The caller asked for a provider or model that is not registered."""

    status_code = 400

    def __init__(self, provider: Optional[str] = None, model: Optional[str] = None):
        parts = []
        if provider:
            parts.append(f"provider '{provider}'")
        if model:
            parts.append(f"model '{model}'")
        super().__init__(f"Unknown {' / '.join(parts) or 'provider'}.")
        self.provider = provider
        self.model = model


class ConfigurationError(GatewayError):
    """The orchestrator itself is misconfigured (no providers or no keys)."""

    status_code = 500

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "missing": self.missing}


class InternalFault(GatewayError):
    """An unexpected exception surfaced at the request boundary."""

    status_code = 500

    def __init__(self, details: str, message: str = "Unexpected server error"):
        super().__init__(message)
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}
