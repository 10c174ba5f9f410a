"""FastAPI application and routes for ish2api proxy."""

import json
import logging
from fastapi import FastAPI, Request, Response
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import CORS_HEADERS, MARKER, TARGET_URL, TIMEOUT, VERSION
from .errors import ErrorEnvelope, NOT_FOUND, REQUEST_ERROR
from .models import ChatCompletionRequest, force_streaming
from .relay import relay_chat_completion

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ish2api Proxy",
    version=VERSION,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    **CORS_HEADERS,
}


class PreflightMiddleware:
    """Answer every OPTIONS request directly, whatever the path."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=dict(CORS_HEADERS))
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)


app.add_middleware(PreflightMiddleware)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Unknown paths and unsupported methods both answer 404."""
    if exc.status_code in (404, 405):
        return ErrorEnvelope.build("Not Found", NOT_FOUND).to_response(404)
    return ErrorEnvelope.build(str(exc.detail), "http_error").to_response(
        exc.status_code
    )


@app.post("/v1/chat/completions")
async def proxy_chat_completions(request: Request) -> Response:
    """
    Proxy endpoint for chat completions:
    - Forces streaming on, whatever the client asked for
    - Relays the upstream event-stream as it arrives
    - Ends the stream silently when the marker shows up
    """
    body = await request.body()

    try:
        request_data = json.loads(body)
        chat_request = ChatCompletionRequest.model_validate(request_data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.error(f"Error parsing request: {str(e)}")
        return ErrorEnvelope.build("Invalid request format", REQUEST_ERROR).to_response(
            400
        )

    payload = force_streaming(request_data)

    logger.info(f"Forwarding request for model '{chat_request.model}' to {TARGET_URL}")

    return StreamingResponse(
        relay_chat_completion(payload, TARGET_URL, timeout=TIMEOUT, marker=MARKER),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


@app.get("/")
async def service_info():
    """Status endpoint"""
    return {
        "message": "Pollinations OpenAI-Compatible Proxy is running. Use the /v1/chat/completions endpoint.",
        "version": VERSION,
        "target_url": TARGET_URL,
    }
