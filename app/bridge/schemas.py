"""Wire models for the `/bridge` routes."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.bridge.models import Chunk, ExchangeOptions, ExchangeResult


class BridgeOptions(BaseModel):
    """Options a raw caller may attach to its input; unknown keys are ignored."""

    model_config = ConfigDict(extra='ignore')

    stream: bool = False
    model: Optional[str] = None

    def to_options(self) -> ExchangeOptions:
        return ExchangeOptions(stream=self.stream, model=self.model or None)


class BridgeCallRequest(BaseModel):
    """Caller body for `POST /bridge`."""

    model_config = ConfigDict(extra='allow')

    input: Any
    options: BridgeOptions = Field(default_factory=BridgeOptions)


class ChunkBody(BaseModel):
    model_config = ConfigDict(extra='allow')

    text: str = ''


class StreamChunkRequest(BaseModel):
    """Fulfiller body for `POST /bridge/stream/{id}`."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    chunk: Optional[ChunkBody] = None
    is_first_chunk: bool = Field(default=False, alias='isFirstChunk')
    is_last_chunk: bool = Field(default=False, alias='isLastChunk')
    full_response: Optional[str] = Field(default=None, alias='fullResponse')

    def to_chunk(self) -> Chunk:
        return Chunk(
            text=self.chunk.text if self.chunk else '',
            is_first=self.is_first_chunk,
            is_last=self.is_last_chunk,
            full_response=self.full_response,
        )


class ResultRequest(BaseModel):
    """Fulfiller body for `POST /bridge/result/{id}`.

    When `success` is omitted the outcome follows `error`: present means failure.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    success: Optional[bool] = None
    response: Optional[str] = None
    full_response: Optional[str] = Field(default=None, alias='fullResponse')
    error: Optional[str] = None

    def to_result(self) -> ExchangeResult:
        payload: Dict[str, Any] = {'response': self.response, 'fullResponse': self.full_response, 'error': self.error}
        if self.success is not None:
            payload['success'] = self.success
        return ExchangeResult.from_payload(payload)
