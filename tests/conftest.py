import json
import pytest
import httpx
from fastapi.testclient import TestClient

CHAT_REQUEST = {
    "model": "gpt-x",
    "messages": [{"role": "user", "content": "hi"}],
}

MOCK_SSE_CHUNKS = [
    b'data: {"choices":[{"index":0,"delta":{"role":"assistant","content":""}}]}\n\n',
    b'data: {"choices":[{"index":0,"delta":{"content":"Hello"}}]}\n\n',
    b'data: {"choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}\n\n',
    b"data: [DONE]\n\n",
]


class ChunkStream(httpx.AsyncByteStream):
    """Response body that hands out fixed chunks and records how it was consumed"""

    def __init__(self, chunks, fail_after=None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.served = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            if self.fail_after is not None and self.served >= self.fail_after:
                raise httpx.ReadError("Connection reset by peer")
            self.served += 1
            yield chunk

    async def aclose(self):
        self.closed = True


class MockUpstream:
    """Records upstream requests and answers them with a canned response"""

    def __init__(self):
        self.requests = []
        self.stream = None
        self._respond = lambda request: httpx.Response(200, stream=ChunkStream([]))

    def reply_chunks(self, chunks, fail_after=None):
        self.stream = ChunkStream(chunks, fail_after=fail_after)
        self._respond = lambda request: httpx.Response(
            200, headers={"content-type": "text/event-stream"}, stream=self.stream
        )
        return self.stream

    def reply_status(self, status_code, text):
        self._respond = lambda request: httpx.Response(status_code, text=text)

    def respond_with(self, respond):
        self._respond = respond

    def fail_with(self, exc_type, message):
        def respond(request):
            raise exc_type(message, request=request)

        self._respond = respond

    def handler(self, request):
        self.requests.append(request)
        return self._respond(request)

    @property
    def last_body(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def mock_upstream(monkeypatch):
    """Route every upstream call to an in-memory transport"""
    import ish2api.upstream

    upstream = MockUpstream()
    real_create_http_client = ish2api.upstream.create_http_client

    def create_http_client(timeout=None):
        return real_create_http_client(
            timeout, transport=httpx.MockTransport(upstream.handler)
        )

    monkeypatch.setattr(ish2api.upstream, "create_http_client", create_http_client)
    return upstream


@pytest.fixture
def test_client(mock_upstream):
    from ish2api.api import app

    return TestClient(app)


async def collect(agen):
    return [chunk async for chunk in agen]


async def iterate(chunks):
    for chunk in chunks:
        yield chunk
