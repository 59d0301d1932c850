"""
openai-chat-stream

Chat completion client with incremental streaming.

Quick Start:
    from openai_chat import OpenAI, ChatCompletionRequest, Message

    client = OpenAI(api_key="sk-xxx")
    request = ChatCompletionRequest(messages=[
        Message.system("You are a helpful assistant."),
        Message.user("what is internet explorer"),
    ])

    # Full text in one call
    print(client.complete_chat(request))

    # Growing snapshots as the answer streams in
    for snapshot in client.complete_chat_streaming(request):
        print(snapshot.text)

    # Async usage
    async_client = AsyncOpenAI(api_key="sk-xxx")
    async for snapshot in async_client.complete_chat_streaming(request):
        print(snapshot.text)
"""

__version__ = "0.1.0"

from .client import OpenAI
from .async_client import AsyncOpenAI
from .models import (
    Role,
    TextBlock,
    ImageBlock,
    ContentBlock,
    Message,
    ChatCompletionRequest,
    ChatCompletionResponse,
    PartialResponse,
    MessageDelta,
    StreamChoice,
)
from .errors import (
    OpenAIError,
    APIError,
    APIErrorKind,
    TransportError,
    NoChoicesError,
    DecodeError,
    ConnectionError,
    EncodingError,
    InvalidResponseError,
    MissingAPIKeyError,
    map_status,
)
from .request import build_request
from .sse import ServerSentEvent, DONE_MARKER
from .assembler import MessageAssembler
from .completion import StreamingCompletion, CompletionStatus

__all__ = [
    "__version__",
    # Clients
    "OpenAI",
    "AsyncOpenAI",
    # Models
    "Role",
    "TextBlock",
    "ImageBlock",
    "ContentBlock",
    "Message",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "PartialResponse",
    "MessageDelta",
    "StreamChoice",
    # Errors
    "OpenAIError",
    "APIError",
    "APIErrorKind",
    "TransportError",
    "NoChoicesError",
    "DecodeError",
    "ConnectionError",
    "EncodingError",
    "InvalidResponseError",
    "MissingAPIKeyError",
    "map_status",
    # Pipeline
    "build_request",
    "ServerSentEvent",
    "DONE_MARKER",
    "MessageAssembler",
    "StreamingCompletion",
    "CompletionStatus",
]
