"""
openai-chat-stream - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- Server-sent event body builders
- Mock transports for unit tests
"""

import json
import os
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from openai_chat import ChatCompletionRequest, Message


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# Stream Bodies
# ============================================================

def sse_body(*events: Union[Dict[str, Any], str]) -> bytes:
    """
    Build an event-stream body.

    Dicts are JSON-encoded; strings are sent as the raw data payload.
    """
    parts = []
    for event in events:
        data = json.dumps(event) if isinstance(event, dict) else event
        parts.append(f"data: {data}\n\n")
    return "".join(parts).encode("utf-8")


def delta_chunk(content: Optional[str] = None, role: Optional[str] = None) -> Dict[str, Any]:
    """One chat.completion.chunk payload with a single delta."""
    delta: Dict[str, Any] = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion.chunk",
        "model": "gpt-3.5-turbo",
        "choices": [{"index": 0, "delta": delta, "finish_reason": None}],
    }


@pytest.fixture
def make_sse_body() -> Callable[..., bytes]:
    return sse_body


@pytest.fixture
def make_delta() -> Callable[..., Dict[str, Any]]:
    return delta_chunk


@pytest.fixture
def explorer_body() -> bytes:
    """Three deltas then [DONE]."""
    return sse_body(
        delta_chunk(role="assistant", content=""),
        delta_chunk(content="Internet"),
        delta_chunk(content=" Explorer is..."),
        "[DONE]",
    )


@pytest.fixture
def chat_request() -> ChatCompletionRequest:
    return ChatCompletionRequest(messages=[
        Message.system("You are a helpful assistant. Answer in one sentence if possible."),
        Message.user("what is internet explorer"),
    ])


@pytest.fixture
def mock_completion_response() -> Dict[str, Any]:
    """Standard one-shot chat completion body."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "created": 1234567890,
        "model": "gpt-3.5-turbo",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "Internet Explorer is a web browser."
                },
                "finish_reason": "stop"
            }
        ],
    }


# ============================================================
# Mock Transports
# ============================================================

class RecordingStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """
    Byte stream that records whether it was closed and can fail midway.

    Yields ``chunks`` one by one, then raises ``error`` if given.
    """

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.closed = False
        self.delivered = 0

    def __iter__(self):
        for chunk in self.chunks:
            self.delivered += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def __aiter__(self):
        for chunk in self.chunks:
            self.delivered += 1
            yield chunk
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True

    async def aclose(self):
        self.closed = True


class TransportRecorder:
    """MockTransport handler that records requests and replays a response factory."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_body(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def recorder_factory() -> Callable[..., TransportRecorder]:
    return TransportRecorder


@pytest.fixture
def recording_stream_factory() -> Callable[..., RecordingStream]:
    return RecordingStream
