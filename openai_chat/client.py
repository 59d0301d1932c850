"""
openai-chat-stream - Synchronous Client

Main client for blocking chat completion calls.
"""

from __future__ import annotations

import json
import os
from typing import Iterator, Optional

import httpx

from .assembler import MessageAssembler, assemble_stream
from .errors import (
    DecodeError,
    InvalidResponseError,
    MissingAPIKeyError,
    NoChoicesError,
    OpenAIError,
    map_status,
    map_transport_error,
)
from .logging import get_logger
from .models import ChatCompletionRequest, ChatCompletionResponse, Message
from .request import DEFAULT_API_URL, build_request
from .sse import iter_events


logger = get_logger(__name__)


class OpenAI:
    """
    Chat completion client.

    Args:
        api_key: Bearer credential. Held only by this instance.
        org_id: Optional organization id sent as ``OpenAI-Organization``.
        api_url: Endpoint URL. Defaults to OPENAI_API_URL env var, then the public endpoint.
        timeout: Request timeout in seconds. Defaults to 60.
        http_client: Pre-configured ``httpx.Client``. Not closed by ``close()``.

    Example:
        >>> client = OpenAI(api_key="sk-xxx")
        >>> request = ChatCompletionRequest(messages=[Message.user("Hello!")])
        >>> print(client.complete_chat(request))

        >>> for snapshot in client.complete_chat_streaming(request):
        ...     print(snapshot.text)
    """

    DEFAULT_API_URL = DEFAULT_API_URL

    def __init__(
        self,
        api_key: str,
        org_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ):
        if not api_key:
            raise MissingAPIKeyError("API key required. Pass api_key to the client.")

        self._api_key = api_key
        self.org_id = org_id
        self.api_url = api_url or os.getenv("OPENAI_API_URL") or self.DEFAULT_API_URL
        self._timeout = timeout

        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    # ============================================================
    # One-shot completion
    # ============================================================

    def complete_chat(
        self,
        request: ChatCompletionRequest,
        api_url: Optional[str] = None
    ) -> str:
        """
        Run a completion and return the full text.

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

        try:
            response = self._client.send(http_request)
        except httpx.RequestError as e:
            raise map_transport_error(e) from e

        return handle_completion_response(response)

    # ============================================================
    # Streaming completion
    # ============================================================

    def complete_chat_streaming(
        self,
        request: ChatCompletionRequest,
        api_url: Optional[str] = None
    ) -> Iterator[Message]:
        """
        Stream a completion as growing Message snapshots.

        The request is built immediately, so EncodingError is raised
        here. Everything else surfaces while iterating. Closing the
        iterator early closes the connection.

        Example:
            >>> for snapshot in client.complete_chat_streaming(request):
            ...     print(snapshot.text)
        """
        http_request = build_request(
            request.with_stream(True),
            api_url or self.api_url,
            self._api_key,
            self.org_id,
        )
        return self._stream(http_request, request.model)

    def _stream(self, http_request: httpx.Request, model: str) -> Iterator[Message]:
        log = logger.with_context(model=model, endpoint=str(http_request.url))
        assembler = MessageAssembler()

        log.debug("Opening completion stream")
        try:
            yield from self._iter_snapshots(http_request, assembler)
        except OpenAIError as e:
            log.warning(
                "Completion stream failed",
                error_code=e.code,
                status_code=e.status_code,
                snapshots=assembler.snapshots,
            )
            raise
        log.debug("Completion stream finished", snapshots=assembler.snapshots)

    def _iter_snapshots(
        self,
        http_request: httpx.Request,
        assembler: MessageAssembler
    ) -> Iterator[Message]:
        try:
            response = self._client.send(http_request, stream=True)
        except httpx.RequestError as e:
            raise map_transport_error(e) from e

        try:
            error = map_status(response.status_code, response.headers)
            if error is not None:
                raise error

            try:
                yield from assemble_stream(iter_events(response.iter_lines()), assembler)
            except httpx.RequestError as e:
                raise map_transport_error(e) from e
        finally:
            response.close()

    # ============================================================
    # Context Manager
    # ============================================================

    def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def handle_completion_response(response: httpx.Response) -> str:
    """Validate a one-shot completion response and return its text."""
    if response.status_code != 200:
        try:
            body = response.text
        except (UnicodeDecodeError, LookupError):
            body = "<failed to decode response>"
        raise InvalidResponseError(body, status_code=response.status_code)

    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Response is not valid JSON: {e}", raw=response.content) from e

    completion = ChatCompletionResponse.from_dict(data)
    if not completion.choices:
        raise NoChoicesError()

    return completion.choices[0].message.text
