"""
Models module for LLM client abstraction.

Provides a unified interface for chatting with a language model.
"""

from mock_interviewer.models.llm_client import (
    DEFAULT_OLLAMA_MODEL,
    ChatMessage,
    LLMClient,
    LLMClientBase,
    LLMResponse,
    OllamaError,
)

__all__ = [
    "ChatMessage",
    "LLMClient",
    "LLMClientBase",
    "LLMResponse",
    "OllamaError",
    "DEFAULT_OLLAMA_MODEL",
]
