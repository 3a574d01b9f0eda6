from .models import ChatCompletionRequest, ChatMessage, SessionTokenRequest
from .openai import OpenAIEnvelopeFormatter, OpenAITranslator, estimate_tokens

__all__ = ['ChatCompletionRequest', 'ChatMessage', 'OpenAIEnvelopeFormatter', 'OpenAITranslator', 'SessionTokenRequest', 'estimate_tokens']
