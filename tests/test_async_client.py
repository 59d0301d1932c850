"""
openai-chat-stream - Async Client Tests
"""

import asyncio
import json

import httpx
import pytest

from openai_chat import AsyncOpenAI, ChatCompletionRequest, Message
from openai_chat.errors import (
    APIError,
    APIErrorKind,
    ConnectionError,
    DecodeError,
    InvalidResponseError,
    MissingAPIKeyError,
    NoChoicesError,
    TransportError,
)


def make_client(handler, **kwargs) -> AsyncOpenAI:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncOpenAI(api_key="sk-test", http_client=http_client, **kwargs)


async def collect(stream):
    return [snapshot.text async for snapshot in stream]


class TestAsyncClientCreation:
    """Tests for AsyncOpenAI construction."""

    def test_missing_key(self):
        """A missing API key raises error."""
        with pytest.raises(MissingAPIKeyError):
            AsyncOpenAI(api_key="")

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self):
        """Leaving the context closes a client the instance created."""
        async with AsyncOpenAI(api_key="sk-test") as client:
            http_client = await client._get_client()
        assert http_client.is_closed


class TestAsyncCompleteChat:
    """Tests for the async one-shot completion."""

    @pytest.mark.asyncio
    async def test_returns_text(self, chat_request, mock_completion_response, recorder_factory):
        """A 200 response returns the first choice's text."""
        recorder = recorder_factory(lambda r: httpx.Response(200, json=mock_completion_response))
        client = make_client(recorder)

        assert await client.complete_chat(chat_request) == "Internet Explorer is a web browser."
        assert recorder.last_body["stream"] is False

    @pytest.mark.asyncio
    async def test_non_200(self, chat_request):
        """Non-200 raises InvalidResponseError with the body text."""
        client = make_client(lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(InvalidResponseError) as exc_info:
            await client.complete_chat(chat_request)
        assert exc_info.value.body == "boom"

    @pytest.mark.asyncio
    async def test_no_choices(self, chat_request):
        """Zero choices raises NoChoicesError."""
        client = make_client(lambda r: httpx.Response(200, json={"choices": []}))
        with pytest.raises(NoChoicesError):
            await client.complete_chat(chat_request)


class TestAsyncCompleteChatStreaming:
    """Tests for the async streaming completion."""

    @pytest.mark.asyncio
    async def test_explorer_scenario(self, chat_request, explorer_body, recorder_factory):
        """Three deltas and [DONE] produce three snapshots and a clean end."""
        recorder = recorder_factory(lambda r: httpx.Response(200, content=explorer_body))
        client = make_client(recorder, org_id="org-9")

        texts = await collect(client.complete_chat_streaming(chat_request))

        assert texts == ["", "Internet", "Internet Explorer is..."]
        assert recorder.last_body["stream"] is True
        assert recorder.requests[0].headers["OpenAI-Organization"] == "org-9"

    @pytest.mark.asyncio
    async def test_rate_limited_before_data(self, chat_request):
        """A 429 yields no snapshots and raises rateLimited."""
        client = make_client(lambda r: httpx.Response(429))
        received = []

        with pytest.raises(APIError) as exc_info:
            async for snapshot in client.complete_chat_streaming(chat_request):
                received.append(snapshot)

        assert received == []
        assert exc_info.value.kind is APIErrorKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_unknown_status(self, chat_request):
        """Other non-200 statuses raise TransportError."""
        client = make_client(lambda r: httpx.Response(502))
        with pytest.raises(TransportError) as exc_info:
            await collect(client.complete_chat_streaming(chat_request))
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_connection_failure(self, chat_request):
        """A connect failure raises ConnectionError."""
        def handler(request):
            raise httpx.ConnectError("DNS failure", request=request)

        with pytest.raises(ConnectionError) as exc_info:
            await collect(make_client(handler).complete_chat_streaming(chat_request))
        assert isinstance(exc_info.value.underlying, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_transport_error_mid_stream(self, chat_request, make_sse_body, make_delta, recording_stream_factory):
        """A read failure mid-stream raises ConnectionError and closes the stream."""
        stream = recording_stream_factory(
            [make_sse_body(make_delta(content="partial"))],
            error=httpx.ReadError("connection reset"),
        )
        client = make_client(lambda r: httpx.Response(200, stream=stream))

        received = []
        with pytest.raises(ConnectionError):
            async for snapshot in client.complete_chat_streaming(chat_request):
                received.append(snapshot.text)

        assert received == ["partial"]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_malformed_event(self, chat_request, make_sse_body, make_delta):
        """A malformed payload raises DecodeError after earlier snapshots."""
        body = make_sse_body(make_delta(content="a"), "not json")
        client = make_client(lambda r: httpx.Response(200, content=body))

        received = []
        with pytest.raises(DecodeError):
            async for snapshot in client.complete_chat_streaming(chat_request):
                received.append(snapshot.text)
        assert received == ["a"]

    @pytest.mark.asyncio
    async def test_aclose_closes_connection(self, chat_request, make_sse_body, make_delta, recording_stream_factory):
        """Closing the iterator early closes the response stream."""
        chunks = [make_sse_body(make_delta(content=str(i))) for i in range(5)]
        stream = recording_stream_factory(chunks)
        client = make_client(lambda r: httpx.Response(200, stream=stream))

        snapshots = client.complete_chat_streaming(chat_request)
        first = await snapshots.__anext__()
        await snapshots.aclose()

        assert first.text == "0"
        assert stream.closed
        assert stream.delivered < len(chunks)

    @pytest.mark.asyncio
    async def test_task_cancellation_closes_connection(self, chat_request, make_sse_body, make_delta):
        """Cancelling the consuming task closes the response promptly."""
        first_chunk = make_sse_body(make_delta(role="assistant", content="start"))
        received = asyncio.Event()
        closed = asyncio.Event()

        class HangingStream(httpx.AsyncByteStream):
            async def __aiter__(self):
                yield first_chunk
                await asyncio.Event().wait()

            async def aclose(self):
                closed.set()

        client = make_client(lambda r: httpx.Response(200, stream=HangingStream()))

        async def consume():
            async for _ in client.complete_chat_streaming(chat_request):
                received.set()

        task = asyncio.create_task(consume())
        await asyncio.wait_for(received.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert closed.is_set()

    @pytest.mark.asyncio
    async def test_concurrent_streams_are_independent(self, chat_request, make_sse_body, make_delta):
        """Two simultaneous calls each assemble their own message."""
        def handler(request):
            prompt = json.loads(request.content)["messages"][-1]["content"][0]["text"]
            return httpx.Response(200, content=make_sse_body(
                make_delta(role="assistant", content=""),
                make_delta(content=prompt.upper()),
                make_delta(content="!"),
                "[DONE]",
            ))

        client = make_client(handler)
        first = ChatCompletionRequest(messages=[Message.user("one")])
        second = ChatCompletionRequest(messages=[Message.user("two")])

        texts_one, texts_two = await asyncio.gather(
            collect(client.complete_chat_streaming(first)),
            collect(client.complete_chat_streaming(second)),
        )

        assert texts_one == ["", "ONE", "ONE!"]
        assert texts_two == ["", "TWO", "TWO!"]
