"""Request models for the OpenAI-compatible surface."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One chat message; content is a string or a list of content parts."""

    model_config = ConfigDict(extra='allow')

    role: str
    content: Union[str, List[Dict[str, Any]], None] = None


class ChatCompletionRequest(BaseModel):
    """Body of `POST /v1/chat/completions`."""

    model_config = ConfigDict(extra='allow')

    model: Optional[str] = None
    messages: List[ChatMessage] = Field(min_length=1)
    stream: bool = False
    max_tokens: Optional[int] = 512
    temperature: Optional[float] = 0.1


class SessionTokenRequest(BaseModel):
    token: str = Field(min_length=1)
