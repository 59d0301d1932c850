"""
openai-chat-stream - Incremental Assembler

Folds decoded stream events into a growing assistant Message, one
snapshot per event.

Only a single growing text block is supported. A delta arriving while
the first block is not text is dropped, not merged.
"""

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, Optional

from .errors import NoChoicesError
from .logging import get_logger
from .models import Message, PartialResponse, Role, TextBlock
from .sse import ServerSentEvent


logger = get_logger(__name__)


class MessageAssembler:
    """
    Stateful fold over PartialResponse values.

    Each ``apply`` returns a new Message; earlier snapshots are never
    mutated, so the text of snapshot n is always a prefix of snapshot n+1.
    """

    def __init__(self, initial: Optional[Message] = None):
        if initial is None:
            initial = Message(role=Role.ASSISTANT, content=[TextBlock("")])
        self._role = initial.role
        self._content = list(initial.content)
        self.snapshots = 0

    @property
    def message(self) -> Message:
        """Copy of the current state."""
        return Message(role=self._role, content=list(self._content))

    def apply(self, partial: PartialResponse) -> Message:
        """
        Merge one event into the state and return the new snapshot.

        The snapshot is a copy; changing it does not affect the state.

        Raises:
            NoChoicesError: If the event carries zero choices.
        """
        if not partial.choices:
            raise NoChoicesError("Stream event contained no choices")

        delta = partial.choices[0].delta
        if delta.role is not None:
            self._role = delta.role

        if delta.content is not None:
            if self._content and isinstance(self._content[0], TextBlock):
                self._content = [TextBlock(self._content[0].text + delta.content)]
            else:
                logger.debug(
                    "Dropped content delta: first block is not text",
                    delta_length=len(delta.content),
                )

        self.snapshots += 1
        return self.message


def assemble_stream(
    events: Iterable[ServerSentEvent],
    assembler: Optional[MessageAssembler] = None
) -> Iterator[Message]:
    """
    Turn raw events into Message snapshots.

    Empty events are skipped and ``[DONE]`` ends the sequence cleanly.
    DecodeError and NoChoicesError propagate and end it with an error.
    """
    assembler = assembler or MessageAssembler()

    for sse in events:
        if not sse.data:
            continue
        if sse.is_done:
            return
        yield assembler.apply(PartialResponse.from_json(sse.data))


async def aassemble_stream(
    events: AsyncIterable[ServerSentEvent],
    assembler: Optional[MessageAssembler] = None
) -> AsyncIterator[Message]:
    """Async version of ``assemble_stream``."""
    assembler = assembler or MessageAssembler()

    async for sse in events:
        if not sse.data:
            continue
        if sse.is_done:
            return
        yield assembler.apply(PartialResponse.from_json(sse.data))
