"""Translation between OpenAI chat completions and the bridge's opaque calls."""

from __future__ import annotations

import math
import time
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.bridge.exceptions import InvalidRequestException, get_error_type
from app.bridge.formatters import SSE_DONE, EnvelopeFormatter, sse_frame
from app.bridge.models import ExchangeOptions
from app.config.log import get_logger
from app.translator.models import ChatCompletionRequest, ChatMessage

logger = get_logger(__name__)

DOWNSTREAM_MODEL = 'claude-sonnet-4'
DEFAULT_MODEL_ALIASES = {'gpt-3.5-turbo': DOWNSTREAM_MODEL, 'gpt-4': DOWNSTREAM_MODEL}

# Rough characters-per-token ratio used for usage accounting.
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Length-based token approximation; deterministic and never negative."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def content_to_text(content: Any) -> str:
    """Flatten message content (string or content parts) into plain text."""
    if content is None:
        return ''
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, Mapping) and part.get('type', 'text') == 'text':
                parts.append(str(part.get('text', '')))
            elif isinstance(part, str):
                parts.append(part)
        return ''.join(parts)
    return str(content)


class OpenAITranslator:
    """Maps chat-completion requests onto bridge input and options."""

    def __init__(self, model_aliases: Optional[Mapping[str, str]] = None, forward_full_conversation: bool = False):
        self.model_aliases = dict(DEFAULT_MODEL_ALIASES if model_aliases is None else model_aliases)
        self.forward_full_conversation = forward_full_conversation

    def latest_user_message(self, request: ChatCompletionRequest) -> ChatMessage:
        for message in reversed(request.messages):
            if message.role == 'user':
                return message
        raise InvalidRequestException('No user message found in the conversation')

    def extract_input(self, request: ChatCompletionRequest) -> Any:
        user_message = self.latest_user_message(request)
        if self.forward_full_conversation:
            return [message.model_dump(exclude_none=True) for message in request.messages]
        return user_message.content if user_message.content is not None else ''

    def prompt_text(self, request: ChatCompletionRequest) -> str:
        """Text counted towards `prompt_tokens`: whatever is forwarded."""
        if self.forward_full_conversation:
            return ''.join(content_to_text(message.content) for message in request.messages)
        return content_to_text(self.latest_user_message(request).content)

    def map_model(self, model: Optional[str]) -> Optional[str]:
        if not model:
            return None
        return self.model_aliases.get(model)

    def to_bridge_call(self, request: ChatCompletionRequest) -> Tuple[Any, ExchangeOptions]:
        bridge_input = self.extract_input(request)
        options = ExchangeOptions(stream=request.stream, model=self.map_model(request.model))
        logger.debug('Translated chat completion request', model=request.model, downstream_model=options.model, stream=options.stream)
        return bridge_input, options

    def formatter_for(self, request: ChatCompletionRequest) -> 'OpenAIEnvelopeFormatter':
        return OpenAIEnvelopeFormatter(model=request.model or 'unknown', prompt_text=self.prompt_text(request))


class OpenAIEnvelopeFormatter(EnvelopeFormatter):
    """Renders relayed text as `chat.completion` objects or chunk streams."""

    def __init__(self, model: str, prompt_text: str = '', completion_id: Optional[str] = None, created: Optional[int] = None):
        self.model = model
        self.prompt_text = prompt_text
        self.completion_id = completion_id or f'chatcmpl-{uuid.uuid4().hex}'
        self.created = created if created is not None else int(time.time())

    def _chunk(self, delta: Dict[str, Any], finish_reason: Optional[str]) -> Dict[str, Any]:
        return {
            'id': self.completion_id,
            'object': 'chat.completion.chunk',
            'created': self.created,
            'model': self.model,
            'choices': [{'index': 0, 'delta': delta, 'finish_reason': finish_reason}],
        }

    def chunk_frames(self, text: str, *, first: bool, last: bool, full_response: str) -> List[bytes]:
        delta: Dict[str, Any] = {}
        if first and (text or not last):
            delta['role'] = 'assistant'
        if text:
            delta['content'] = text

        if not last:
            return [sse_frame(self._chunk(delta, None))]
        return [sse_frame(self._chunk(delta, 'stop')), SSE_DONE]

    def usage(self, completion_text: str) -> Dict[str, int]:
        prompt_tokens = estimate_tokens(self.prompt_text)
        completion_tokens = estimate_tokens(completion_text)
        return {'prompt_tokens': prompt_tokens, 'completion_tokens': completion_tokens, 'total_tokens': prompt_tokens + completion_tokens}

    def result_body(self, full_response: str) -> Dict[str, Any]:
        return {
            'id': self.completion_id,
            'object': 'chat.completion',
            'created': self.created,
            'model': self.model,
            'choices': [{'index': 0, 'message': {'role': 'assistant', 'content': full_response}, 'finish_reason': 'stop'}],
            'usage': self.usage(full_response),
        }

    def error_payload(self, exc: Exception) -> Dict[str, Any]:
        return {'error': {'message': str(exc), 'type': get_error_type(exc)}}


__all__ = [
    'CHARS_PER_TOKEN',
    'DEFAULT_MODEL_ALIASES',
    'DOWNSTREAM_MODEL',
    'OpenAIEnvelopeFormatter',
    'OpenAITranslator',
    'content_to_text',
    'estimate_tokens',
]
