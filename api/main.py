"""FastAPI application for the code review relay."""

import asyncio
import contextvars
import json
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agents.review_relay import CompletionClient, ReviewRelay
from config.settings import Settings, load_settings
from models.data_models import (
    ErrorCategory,
    ErrorOutcome,
    ErrorResponse,
    HealthResponse,
    ReviewRequest,
    ReviewResponse,
    ValidatedRequest,
)
from tools.error_handling import (
    InputValidationError,
    RateLimitExceeded,
    RelayError,
    RequestTooLarge,
    outcome_for,
    status_code_for,
)
from tools.input_validation import validate_review_request
from tools.llm_client import BedrockClient
from tools.observability import (
    configure_logging,
    generate_request_id,
    request_context,
    setup_tracing,
)
from tools.rate_limiter import RateLimitDecision, SlidingWindowRateLimiter


VERSION = "1.0.0"

# Above this many tracked clients, idle counters are pruned before admitting
MAX_TRACKED_CLIENTS = 10000

logger = structlog.get_logger()


def get_client_key(request: Request, trust_proxy: bool = False) -> str:
    """Identify the caller for rate limiting."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client is None:
        return "unknown"
    return request.client.host


def rate_limit_headers(decision: RateLimitDecision) -> Dict[str, str]:
    headers = {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.retry_after),
    }
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after)
    return headers


def error_response(
    outcome: ErrorOutcome,
    status_code: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(error=outcome.message, request_id=outcome.request_id)
    return JSONResponse(
        status_code=status_code or status_code_for(outcome.category),
        content=body.model_dump(by_alias=True),
        headers=headers,
    )


async def read_review_request(request: Request, max_bytes: int) -> ReviewRequest:
    """
    Read and decode the JSON body of a review request.

    An unparsable or non-object body yields an empty request, which the
    validator rejects as missing code.

    Raises:
        RequestTooLarge: If the body exceeds ``max_bytes``
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise RequestTooLarge(max_bytes)

    # Chunked bodies carry no content-length; stop reading once over the limit
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise RequestTooLarge(max_bytes)
        chunks.append(chunk)
    body = b"".join(chunks)

    try:
        data = json.loads(body) if body else {}
    except ValueError:
        data = {}

    if not isinstance(data, dict):
        data = {}
    return ReviewRequest.model_validate(data)


async def run_review(relay: ReviewRelay, validated: ValidatedRequest, timeout: float):
    """
    Run the blocking relay call off the event loop, bounded by ``timeout``.

    Raises:
        RelayError: On provider failure, or ``UNKNOWN`` when the timeout expires
    """
    loop = asyncio.get_running_loop()
    context = contextvars.copy_context()
    future = loop.run_in_executor(None, context.run, relay.review, validated)

    try:
        return await asyncio.wait_for(future, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error("upstream_timeout", timeout_seconds=timeout)
        raise RelayError(ErrorCategory.UNKNOWN, cause=e) from e


def create_llm_client(settings: Settings) -> BedrockClient:
    """Create the Bedrock client from settings."""
    try:
        client = BedrockClient(
            model=settings.claude_model,
            region=settings.aws_region,
            profile=settings.aws_profile,
            read_timeout=settings.request_timeout_seconds,
        )
    except Exception as e:
        logger.error(
            "bedrock_client_init_failed",
            error_type=type(e).__name__,
            error_message=str(e),
            aws_profile=settings.aws_profile,
        )
        raise

    logger.info(
        "bedrock_client_initialized",
        aws_region=settings.aws_region,
        aws_profile=settings.aws_profile,
        model=settings.claude_model,
    )
    return client


def create_app(
    settings: Optional[Settings] = None,
    llm_client: Optional[CompletionClient] = None,
    rate_limiter: Optional[SlidingWindowRateLimiter] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment if None)
        llm_client: Provider client (a Bedrock client is created if None)
        rate_limiter: Limiter instance (built from settings if None)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = load_settings()

    configure_logging(settings.log_level, settings.log_format)
    setup_tracing(version=VERSION)

    if llm_client is None:
        llm_client = create_llm_client(settings)

    relay = ReviewRelay(
        llm_client,
        max_tokens=settings.claude_max_tokens,
        temperature=settings.claude_temperature,
    )
    limiter = rate_limiter
    if limiter is None:
        limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    allowed_origins = settings.allowed_origins

    docs_enabled = not settings.is_production
    app = FastAPI(
        title="Code Review Relay",
        description="Relays submitted code to an LLM and returns its review",
        version=VERSION,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings
    app.state.relay = relay
    app.state.rate_limiter = limiter

    # CORS headers for allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def enforce_allowed_origin(request: Request, call_next):
        origin = request.headers.get("origin")
        if origin is None:
            allowed = not settings.is_production
        else:
            allowed = origin in allowed_origins

        if not allowed:
            logger.warning("origin_rejected", origin=origin, path=request.url.path)
            return JSONResponse(status_code=403, content={"error": "Origin not allowed"})
        return await call_next(request)

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        with request_context(request_id, method=request.method, path=request.url.path):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "unhandled_error",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    exc_info=True,
                )
                response = JSONResponse(
                    status_code=500,
                    content=ErrorResponse(
                        error="Internal server error", request_id=request_id
                    ).model_dump(by_alias=True),
                )
        response.headers["X-Request-ID"] = request_id
        return response

    def enforce_rate_limit(request: Request) -> Dict[str, str]:
        """Admit the caller or raise ``RateLimitExceeded``; returns headers."""
        if not settings.rate_limit_enabled:
            return {}

        if len(limiter) > MAX_TRACKED_CLIENTS:
            limiter.prune()

        client_key = get_client_key(request, settings.trust_proxy)
        decision = limiter.admit(client_key)
        headers = rate_limit_headers(decision)
        request.state.rate_limit_headers = headers

        if not decision.allowed:
            logger.warning("rate_limited", client=client_key, retry_after=decision.retry_after)
            raise RateLimitExceeded(decision.retry_after)
        return headers

    @app.exception_handler(RateLimitExceeded)
    async def handle_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return error_response(
            outcome_for(exc, request.state.request_id),
            headers=getattr(request.state, "rate_limit_headers", None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            message = "Endpoint not found"
        elif exc.status_code == 405:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> JSONResponse:
        """Health check endpoint. Not rate limited."""
        body = HealthResponse(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            version=VERSION,
            ai_provider=getattr(llm_client, "provider_name", "AWS Bedrock (Claude)"),
            model=llm_client.model,
        )
        return JSONResponse(content=body.model_dump(by_alias=True))

    @app.post("/api/review", response_model=ReviewResponse)
    async def review(
        request: Request,
        limit_headers: Dict[str, str] = Depends(enforce_rate_limit),
    ) -> JSONResponse:
        """
        Review submitted code.

        Validates and sanitizes the payload, relays it to the model in a
        single call and returns the review with token usage. Every response
        carries the request id.
        """
        request_id = request.state.request_id

        try:
            payload = await read_review_request(request, settings.max_request_size)
            validated = validate_review_request(
                payload.code,
                payload.language,
                settings.max_code_length,
            )
        except RequestTooLarge as e:
            logger.warning("review_rejected", reason="request_too_large", limit=e.limit)
            return JSONResponse(
                status_code=413,
                content=ErrorResponse(error=str(e), request_id=request_id).model_dump(by_alias=True),
                headers=limit_headers,
            )
        except InputValidationError as e:
            logger.info("review_rejected", reason=e.kind.value)
            return error_response(outcome_for(e, request_id), headers=limit_headers)

        logger.info(
            "review_requested",
            language=validated.language,
            code_length=len(validated.sanitized_code),
        )

        try:
            result = await run_review(relay, validated, settings.request_timeout_seconds)
        except RelayError as e:
            return error_response(outcome_for(e, request_id), headers=limit_headers)

        logger.info("review_completed", total_tokens=result.usage.total_tokens)
        body = ReviewResponse.from_result(result, request_id)
        return JSONResponse(content=body.model_dump(by_alias=True), headers=limit_headers)

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=_settings.host,
        port=_settings.port,
    )
