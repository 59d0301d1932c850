"""
openai-chat-stream - Observable Streaming Completion

Drives a snapshot stream to the end and exposes its progress as plain
attributes, for UIs that render "loading / complete / error" plus the
text so far.
"""

from enum import Enum
from typing import AsyncIterable, Callable, Iterable, List, Optional

from .errors import OpenAIError
from .logging import get_logger
from .models import Message


logger = get_logger(__name__)


class CompletionStatus(str, Enum):
    """Lifecycle of a streaming completion."""
    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"


class StreamingCompletion:
    """
    Observable state of one streaming completion.

    Attributes:
        status: LOADING until the stream ends, then COMPLETE or ERROR
        message: Latest snapshot, if any arrived
        error: The library error that ended the stream, if any

    Subscribers are called with this object after every snapshot and
    once more when the stream terminates.

    Example:
        >>> completion = StreamingCompletion()
        >>> completion.subscribe(lambda c: print(c.text))
        >>> await completion.aconsume(client.complete_chat_streaming(request))
        >>> completion.status
        <CompletionStatus.COMPLETE: 'complete'>
    """

    def __init__(self):
        self.status = CompletionStatus.LOADING
        self.message: Optional[Message] = None
        self.error: Optional[OpenAIError] = None
        self._subscribers: List[Callable[["StreamingCompletion"], None]] = []

    @property
    def text(self) -> str:
        """Text of the latest snapshot."""
        return self.message.text if self.message is not None else ""

    def subscribe(self, callback: Callable[["StreamingCompletion"], None]) -> None:
        """Register a callback for state changes."""
        self._subscribers.append(callback)

    def consume(self, snapshots: Iterable[Message]) -> "StreamingCompletion":
        """Drive a synchronous snapshot stream to its end."""
        try:
            for message in snapshots:
                self._update(message)
        except OpenAIError as e:
            self._fail(e)
        else:
            self._finish()
        return self

    async def aconsume(self, snapshots: AsyncIterable[Message]) -> "StreamingCompletion":
        """Drive an async snapshot stream to its end."""
        try:
            async for message in snapshots:
                self._update(message)
        except OpenAIError as e:
            self._fail(e)
        else:
            self._finish()
        return self

    def _update(self, message: Message) -> None:
        self.message = message
        self._notify()

    def _finish(self) -> None:
        self.status = CompletionStatus.COMPLETE
        self._notify()

    def _fail(self, error: OpenAIError) -> None:
        logger.debug("Streaming completion ended with error", error_code=error.code)
        self.error = error
        self.status = CompletionStatus.ERROR
        self._notify()

    def _notify(self) -> None:
        for callback in self._subscribers:
            callback(self)
