"""
openai-chat-stream - Streaming Example

Demonstrates streaming responses for real-time output.

Usage:
    OPENAI_API_KEY=sk-xxx python examples/streaming_chat.py "what is internet explorer"
"""

import asyncio
import os
import sys

from openai_chat import (
    AsyncOpenAI,
    ChatCompletionRequest,
    Message,
    OpenAI,
    StreamingCompletion,
)


def build_request(prompt: str) -> ChatCompletionRequest:
    return ChatCompletionRequest(messages=[
        Message.system("You are a helpful assistant. Answer in one sentence if possible."),
        Message.user(prompt),
    ])


def main():
    api_key = os.getenv("OPENAI_API_KEY", "")
    if not api_key:
        sys.exit("Set OPENAI_API_KEY to run this example")

    prompt = sys.argv[1] if len(sys.argv) > 1 else "what is internet explorer"
    request = build_request(prompt)

    # ============================================================
    # Snapshot Streaming
    # ============================================================
    print("=== Snapshot Streaming ===\n")

    printed = 0
    with OpenAI(api_key=api_key) as client:
        for snapshot in client.complete_chat_streaming(request):
            text = snapshot.text
            sys.stdout.write(text[printed:])
            sys.stdout.flush()
            printed = len(text)
    print("\n[Stream complete]\n")

    # ============================================================
    # Observable Completion (async)
    # ============================================================
    print("=== Observable Completion ===\n")

    async def run() -> StreamingCompletion:
        completion = StreamingCompletion()
        async with AsyncOpenAI(api_key=api_key) as client:
            await completion.aconsume(client.complete_chat_streaming(request))
        return completion

    completion = asyncio.run(run())
    print(completion.text)
    print(f"[{completion.status.value}]")
    if completion.error is not None:
        print(f"Error: {completion.error!r}")


if __name__ == "__main__":
    main()
