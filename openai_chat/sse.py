"""
openai-chat-stream - Event-Stream Parser

Decodes server-sent event framing from the lines of a streaming HTTP
body into ``ServerSentEvent`` records.

Framing rules:
- ``data:`` lines accumulate, joined with newlines
- ``event:``, ``id:`` and ``retry:`` set the matching fields
- lines starting with ``:`` are comments
- a blank line dispatches the event
"""

from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional


DONE_MARKER = "[DONE]"


@dataclass
class ServerSentEvent:
    """One dispatched event."""
    data: str = ""
    event: Optional[str] = None
    id: Optional[str] = None
    retry: Optional[int] = None

    @property
    def is_done(self) -> bool:
        """True for the end-of-stream marker."""
        return self.data == DONE_MARKER


class SSEDecoder:
    """
    Incremental line decoder.

    Feed it one line at a time (without the trailing newline). It
    returns an event whenever a blank line completes one.
    """

    def __init__(self):
        self._data: List[str] = []
        self._event: Optional[str] = None
        self._last_event_id: Optional[str] = None
        self._retry: Optional[int] = None
        self._pending = False

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        line = line.rstrip("\r\n")

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
            self._pending = True
        elif name == "event":
            self._event = value
            self._pending = True
        elif name == "id":
            # ids containing NUL are ignored
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                pass

        return None

    def flush(self) -> Optional[ServerSentEvent]:
        """Dispatch an event left unterminated at end of body."""
        return self._dispatch()

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._pending:
            return None

        sse = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event,
            id=self._last_event_id,
            retry=self._retry,
        )

        self._data = []
        self._event = None
        self._pending = False
        return sse


def iter_events(lines: Iterable[str]) -> Iterator[ServerSentEvent]:
    """Yield events from an iterable of body lines."""
    decoder = SSEDecoder()
    for line in lines:
        sse = decoder.decode(line)
        if sse is not None:
            yield sse

    sse = decoder.flush()
    if sse is not None:
        yield sse


async def aiter_events(lines: AsyncIterable[str]) -> AsyncIterator[ServerSentEvent]:
    """Yield events from an async iterable of body lines."""
    decoder = SSEDecoder()
    async for line in lines:
        sse = decoder.decode(line)
        if sse is not None:
            yield sse

    sse = decoder.flush()
    if sse is not None:
        yield sse
