"""
openai-chat-stream - Request Builder

Turns a ChatCompletionRequest into an inert ``httpx.Request``. No
network I/O happens here.
"""

import json
from typing import Dict, Optional

import httpx

from . import __version__
from .errors import EncodingError
from .models import ChatCompletionRequest


DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"


def build_headers(api_key: str, org_id: Optional[str] = None) -> Dict[str, str]:
    """Headers required by the completion service."""
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "User-Agent": f"openai-chat-stream-python/{__version__}",
    }
    if org_id:
        headers["OpenAI-Organization"] = org_id
    return headers


def build_request(
    request: ChatCompletionRequest,
    url: str,
    api_key: str,
    org_id: Optional[str] = None
) -> httpx.Request:
    """
    Build the POST request for a chat completion.

    Args:
        request: Completion parameters. Serialized as-is, including its
            ``stream`` flag.
        url: Full endpoint URL.
        api_key: Bearer credential for this call.
        org_id: Optional organization id header.

    Raises:
        EncodingError: If the message content cannot be serialized.
    """
    try:
        body = json.dumps(request.to_dict()).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Failed to serialize request: {e}") from e

    headers = build_headers(api_key, org_id)
    if request.stream:
        headers["Accept"] = "text/event-stream"

    return httpx.Request("POST", url, headers=headers, content=body)
