"""
openai-chat-stream - Async Client

Async client for non-blocking chat completion calls.
"""

from __future__ import annotations

import os
from contextlib import aclosing
from typing import AsyncIterator, Optional

import httpx

from .assembler import MessageAssembler, aassemble_stream
from .client import handle_completion_response
from .errors import (
    MissingAPIKeyError,
    OpenAIError,
    map_status,
    map_transport_error,
)
from .logging import get_logger
from .models import ChatCompletionRequest, Message
from .request import DEFAULT_API_URL, build_request
from .sse import aiter_events


logger = get_logger(__name__)


class AsyncOpenAI:
    """
    Async chat completion client.

    Each streaming call owns its own connection and assembler, so
    concurrent calls on one client share no mutable state.

    Args:
        api_key: Bearer credential. Held only by this instance.
        org_id: Optional organization id sent as ``OpenAI-Organization``.
        api_url: Endpoint URL. Defaults to OPENAI_API_URL env var, then the public endpoint.
        timeout: Request timeout in seconds. Defaults to 60.
        http_client: Pre-configured ``httpx.AsyncClient``. Not closed by ``close()``.

    Example:
        >>> client = AsyncOpenAI(api_key="sk-xxx")
        >>> async for snapshot in client.complete_chat_streaming(request):
        ...     print(snapshot.text)
    """

    DEFAULT_API_URL = DEFAULT_API_URL

    def __init__(
        self,
        api_key: str,
        org_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise MissingAPIKeyError("API key required. Pass api_key to the client.")

        self._api_key = api_key
        self.org_id = org_id
        self.api_url = api_url or os.getenv("OPENAI_API_URL") or self.DEFAULT_API_URL
        self.timeout = timeout

        self._owns_client = http_client is None
        self._client: Optional[httpx.AsyncClient] = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def complete_chat(
        self,
        request: ChatCompletionRequest,
        api_url: Optional[str] = None
    ) -> str:
        """
        Run a completion asynchronously and return the full text.

        Raises:
            InvalidResponseError: Status was not 200.
            DecodeError: Body did not have the completion shape.
            NoChoicesError: Body had zero choices.
            ConnectionError: Transport failure.
        """
        http_request = build_request(
            request.with_stream(False),
            api_url or self.api_url,
            self._api_key,
            self.org_id,
        )

        client = await self._get_client()
        try:
            response = await client.send(http_request)
        except httpx.RequestError as e:
            raise map_transport_error(e) from e

        return handle_completion_response(response)

    def complete_chat_streaming(
        self,
        request: ChatCompletionRequest,
        api_url: Optional[str] = None
    ) -> AsyncIterator[Message]:
        """
        Stream a completion as growing Message snapshots.

        The request is built immediately, so EncodingError is raised
        here. Everything else surfaces while iterating. Calling
        ``aclose()`` on the iterator, leaving the loop or cancelling
        the consuming task closes the connection.

        Example:
            >>> async for snapshot in client.complete_chat_streaming(request):
            ...     print(snapshot.text)
        """
        http_request = build_request(
            request.with_stream(True),
            api_url or self.api_url,
            self._api_key,
            self.org_id,
        )
        return self._astream(http_request, request.model)

    async def _astream(self, http_request: httpx.Request, model: str) -> AsyncIterator[Message]:
        log = logger.with_context(model=model, endpoint=str(http_request.url))
        assembler = MessageAssembler()

        log.debug("Opening completion stream")
        try:
            async with aclosing(self._aiter_snapshots(http_request, assembler)) as snapshots:
                async for message in snapshots:
                    yield message
        except OpenAIError as e:
            log.warning(
                "Completion stream failed",
                error_code=e.code,
                status_code=e.status_code,
                snapshots=assembler.snapshots,
            )
            raise
        log.debug("Completion stream finished", snapshots=assembler.snapshots)

    async def _aiter_snapshots(
        self,
        http_request: httpx.Request,
        assembler: MessageAssembler
    ) -> AsyncIterator[Message]:
        client = await self._get_client()
        try:
            response = await client.send(http_request, stream=True)
        except httpx.RequestError as e:
            raise map_transport_error(e) from e

        try:
            error = map_status(response.status_code, response.headers)
            if error is not None:
                raise error

            try:
                async with aclosing(aiter_events(response.aiter_lines())) as events:
                    async with aclosing(aassemble_stream(events, assembler)) as messages:
                        async for message in messages:
                            yield message
            except httpx.RequestError as e:
                raise map_transport_error(e) from e
        finally:
            await response.aclose()

    async def close(self):
        """Close the async HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
