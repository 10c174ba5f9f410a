"""Data models and schemas for ish2api proxy."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """Chat message model."""
    model_config = ConfigDict(extra="allow")

    role: str
    content: Union[str, List[Dict[str, Any]], None] = None


class ChatCompletionRequest(BaseModel):
    """
    Request model for chat completions.

    Fields the proxy does not know about are kept and forwarded untouched.
    """
    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[Message]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    # Overwritten before forwarding, so any value is accepted
    stream: Any = None


def force_streaming(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the client payload with streaming forced on, whatever the client asked for."""
    return {**payload, "stream": True}
