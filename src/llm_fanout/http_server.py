"""HTTP server for the LLM fan-out service.

Stateless, single endpoint: POST a prompt, get every provider's answer plus a
merged one. Secrets are read from the environment once at startup.

Usage:
    llm-fanout serve

Or programmatically:
    from llm_fanout.http_server import app
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, Security
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field, ValidationError

from llm_fanout.config import get_config
from llm_fanout.gateway.errors import EmptyPrompt, GatewayError, InternalFault, InvalidRequest
from llm_fanout.request_gateway import RequestGateway

logger = logging.getLogger(__name__)

FANOUT_PATH = "/v1/fanout"

# Optional bearer token guarding the fan-out endpoint
security = HTTPBearer(auto_error=False)


class Unauthorized(GatewayError):
    status_code = 401


def get_api_token() -> Optional[str]:
    """Get the API token from the process configuration.

    Returns None if no token is configured, meaning the endpoint is open.
    """
    return get_config().api_token or None


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> None:
    """Require ``Authorization: Bearer <token>`` when LLM_FANOUT_API_TOKEN is set."""
    api_token = get_api_token()
    if api_token is None:
        return
    if credentials is None or credentials.credentials != api_token:
        raise Unauthorized("Invalid or missing API token. Provide Authorization: Bearer <token>")


@lru_cache(maxsize=1)
def get_request_gateway() -> RequestGateway:
    """Build the process-wide gateway from the process configuration."""
    return RequestGateway.from_config(get_config())


class FanoutRequest(BaseModel):
    """Request body for a fan-out."""

    prompt: Optional[str] = Field(default=None, description="The prompt to send")
    message: Optional[str] = Field(default=None, description="Alias of prompt")
    provider: Optional[str] = Field(
        default=None, description="Restrict to one provider id or provider group"
    )
    model: Optional[str] = Field(default=None, description="Restrict to one model id")

    @property
    def effective_prompt(self) -> Optional[str]:
        if self.prompt and self.prompt.strip():
            return self.prompt
        return self.message


class FanoutResponse(BaseModel):
    """Response from a fan-out."""

    prompt: str
    results: List[Dict[str, str]] = Field(..., description="Per-provider output or error")
    combinedAnswer: Optional[str] = Field(..., description="Merged successful outputs")
    combinedFallback: str = Field(..., description="One status line per provider")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


app = FastAPI(
    title="LLM Fan-out",
    description="Send one prompt to several LLM providers and merge the answers",
    version="1.0.0",
)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Covers failures raised outside the endpoint body, e.g. while building dependencies
    logger.exception("Unhandled error")
    fault = InternalFault(details=str(exc))
    return JSONResponse(status_code=fault.status_code, content=fault.to_payload())


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    """Health check endpoint for load balancers and monitoring."""
    return HealthResponse(status="ok", service="llm-fanout")


@app.get("/health/credentials", tags=["Health"])
async def credential_health(
    gateway: RequestGateway = Depends(get_request_gateway),
) -> Dict[str, str]:
    """Report which provider credentials are configured (never their values)."""
    return gateway.credential_status()


async def _parse_body(request: Request) -> FanoutRequest:
    try:
        body: Any = await request.json()
    except ValueError:
        raise InvalidRequest("Request body must be valid JSON.")
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object.")
    try:
        return FanoutRequest.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise InvalidRequest(f"Invalid field types in JSON body: {fields}.")


@app.post(
    FANOUT_PATH,
    response_model=FanoutResponse,
    tags=["Fan-out"],
    dependencies=[Depends(verify_token)],
)
async def fanout(
    request: Request,
    gateway: RequestGateway = Depends(get_request_gateway),
) -> FanoutResponse:
    """Send the prompt to every selected provider and merge the answers.

    Provider failures do not fail the request: they show up as ``error``
    entries in ``results`` and ``combinedAnswer`` is null only when every
    provider failed.
    """
    body = await _parse_body(request)
    prompt = body.effective_prompt
    if not prompt or not prompt.strip():
        raise EmptyPrompt()

    try:
        result = await gateway.handle(prompt, provider=body.provider, model=body.model)
    except GatewayError:
        raise
    except Exception as e:
        logger.exception("Unexpected handler error")
        raise InternalFault(details=str(e))

    return FanoutResponse(**result.to_payload(prompt.strip()))


@app.api_route(
    FANOUT_PATH,
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
async def fanout_method_not_allowed() -> JSONResponse:
    return JSONResponse(status_code=405, content={"error": "Only POST allowed."})
