"""Error types and error envelopes for ish2api proxy.

Every failure the proxy reports uses the same envelope:

    {"error": {"message": ..., "type": ..., "details": ...}}

Before streaming starts it is sent as a plain JSON body with a 4xx status.
Once the event-stream has begun the status is already committed, so the
envelope is sent as a single SSE data event instead.
"""

import json
from typing import Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

REQUEST_ERROR = "request_error"
UPSTREAM_ERROR = "upstream_error"
PROXY_ERROR = "proxy_error"
NOT_FOUND = "not_found"


class ErrorDetail(BaseModel):
    message: str
    type: str
    details: Optional[str] = None


class ErrorEnvelope(BaseModel):
    error: ErrorDetail

    @classmethod
    def build(cls, message: str, type: str, details: Optional[str] = None):
        return cls(error=ErrorDetail(message=message, type=type, details=details))

    def to_dict(self):
        return self.model_dump(exclude_none=True)

    def to_sse(self) -> bytes:
        """Serialize as one event-stream data line."""
        return f"data: {json.dumps(self.to_dict())}\n\n".encode()

    def to_response(self, status_code: int) -> JSONResponse:
        return JSONResponse(content=self.to_dict(), status_code=status_code)


class ProxyError(Exception):
    """Base class for failures reaching or reading the upstream."""

    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope.build(
            f"An unexpected error occurred: {self}", PROXY_ERROR
        )


class UpstreamStatusError(ProxyError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Upstream API error: {status_code}")
        self.status_code = status_code
        self.body = body

    def envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope.build(str(self), UPSTREAM_ERROR, details=self.body)


class UpstreamConnectionError(ProxyError):
    """Transport-level failure: connect, DNS, reset, read errors."""
