"""
openai-chat-stream - Data Models

Dataclasses for messages, requests and responses, with the exact wire
encoding the completion service expects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from PIL import Image

from .errors import DecodeError
from .images import decode_image, encode_image


DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 1500
DEFAULT_TEMPERATURE = 0.2


class Role(str, Enum):
    """Author of a message."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def _parse_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError as e:
        raise DecodeError(f"Unknown role: {value!r}", raw=value) from e


# ============================================================
# Content Blocks
# ============================================================

@dataclass(frozen=True)
class TextBlock:
    """Plain text content."""
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImageBlock:
    """Image content. Sent over the wire as a JPEG data URI."""
    image: Image.Image

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "image_url", "image_url": encode_image(self.image)}


ContentBlock = Union[TextBlock, ImageBlock]


def content_block_from_dict(data: Any) -> ContentBlock:
    """
    Decode one content block.

    Variants are tried in a fixed order: ``text`` first, then
    ``image_url``. The ``image_url`` value may be the data URI itself or
    an object holding it under ``url``.

    Raises:
        DecodeError: If neither variant is present and valid.
    """
    if not isinstance(data, dict):
        raise DecodeError("Content block must be an object", raw=data)

    text = data.get("text")
    if isinstance(text, str):
        return TextBlock(text)

    image_url = data.get("image_url")
    if isinstance(image_url, dict):
        image_url = image_url.get("url")
    if image_url is not None:
        return ImageBlock(decode_image(image_url))

    raise DecodeError("Content block has neither text nor image_url", raw=data)


def content_block_to_dict(block: ContentBlock) -> Dict[str, Any]:
    """Encode one content block, ``type`` first."""
    return block.to_dict()


# ============================================================
# Message Models
# ============================================================

@dataclass
class Message:
    """A chat message made of ordered content blocks."""
    role: Role
    content: List[ContentBlock] = field(default_factory=list)

    @classmethod
    def from_text(cls, role: Union[Role, str], text: str) -> Message:
        """Create a message with a single text block."""
        return cls(role=Role(role), content=[TextBlock(text)])

    @classmethod
    def system(cls, text: str) -> Message:
        """Create a system message."""
        return cls.from_text(Role.SYSTEM, text)

    @classmethod
    def user(cls, text: str) -> Message:
        """Create a user message."""
        return cls.from_text(Role.USER, text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        """Create an assistant message."""
        return cls.from_text(Role.ASSISTANT, text)

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(
            block.text for block in self.content if isinstance(block, TextBlock)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to wire format."""
        return {
            "role": self.role.value,
            "content": [content_block_to_dict(block) for block in self.content],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        """
        Create from wire format.

        Plain string content is accepted and becomes a single text block.
        """
        if not isinstance(data, dict):
            raise DecodeError("Message must be an object", raw=data)

        role = _parse_role(data.get("role"))
        content = data.get("content")

        if content is None:
            blocks: List[ContentBlock] = []
        elif isinstance(content, str):
            blocks = [TextBlock(content)]
        elif isinstance(content, list):
            blocks = [content_block_from_dict(item) for item in content]
        else:
            raise DecodeError("Message content must be a string or a list", raw=data)

        return cls(role=role, content=blocks)


# ============================================================
# Request Models
# ============================================================

@dataclass
class ChatCompletionRequest:
    """Parameters for a chat completion."""
    messages: List[Message]
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    stream: bool = False
    stop: Optional[List[str]] = None

    def with_stream(self, stream: bool) -> ChatCompletionRequest:
        """Return a copy with the streaming flag overridden."""
        return replace(self, stream=stream)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to wire format."""
        result: Dict[str, Any] = {
            "messages": [m.to_dict() for m in self.messages],
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": self.stream,
        }

        if self.stop is not None:
            result["stop"] = list(self.stop)

        return result


# ============================================================
# Response Models
# ============================================================

@dataclass
class MessageDelta:
    """Fields newly produced since the previous stream event."""
    role: Optional[Role] = None
    content: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> MessageDelta:
        if not isinstance(data, dict):
            raise DecodeError("delta must be an object", raw=data)

        role = data.get("role")
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise DecodeError("delta.content must be a string", raw=data)

        return cls(
            role=_parse_role(role) if role is not None else None,
            content=content,
        )


@dataclass
class StreamChoice:
    """One choice of a streamed chunk."""
    delta: MessageDelta
    index: int = 0
    finish_reason: Optional[str] = None


@dataclass
class PartialResponse:
    """Decoded payload of a single stream event."""
    choices: List[StreamChoice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> PartialResponse:
        """Create from a decoded event payload."""
        if not isinstance(data, dict):
            raise DecodeError("Stream event payload must be an object", raw=data)

        choices = data.get("choices")
        if not isinstance(choices, list):
            raise DecodeError("Stream event payload has no choices list", raw=data)

        parsed = []
        for choice in choices:
            if not isinstance(choice, dict):
                raise DecodeError("Choice must be an object", raw=data)
            parsed.append(StreamChoice(
                delta=MessageDelta.from_dict(choice.get("delta")),
                index=choice.get("index", 0),
                finish_reason=choice.get("finish_reason"),
            ))

        return cls(choices=parsed)

    @classmethod
    def from_json(cls, raw: str) -> PartialResponse:
        """
        Decode an event's data payload.

        Raises:
            DecodeError: If the payload is not JSON or has the wrong shape.
        """
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON in stream event: {e}", raw=raw) from e

        try:
            return cls.from_dict(data)
        except DecodeError as e:
            e.raw = raw
            raise


@dataclass
class CompletionChoice:
    """One choice of a one-shot completion."""
    message: Message
    index: int = 0
    finish_reason: Optional[str] = None


@dataclass
class ChatCompletionResponse:
    """Response body of a one-shot completion."""
    choices: List[CompletionChoice] = field(default_factory=list)
    id: str = ""
    model: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ChatCompletionResponse:
        """Create from API response dictionary."""
        if not isinstance(data, dict):
            raise DecodeError("Response must be an object", raw=data)

        choices = data.get("choices")
        if not isinstance(choices, list):
            raise DecodeError("Response has no choices list", raw=data)

        parsed = []
        for choice in choices:
            if not isinstance(choice, dict):
                raise DecodeError("Choice must be an object", raw=data)
            parsed.append(CompletionChoice(
                message=Message.from_dict(choice.get("message")),
                index=choice.get("index", 0),
                finish_reason=choice.get("finish_reason"),
            ))

        return cls(
            choices=parsed,
            id=data.get("id", ""),
            model=data.get("model", ""),
        )
