"""
LLM client abstraction.

Provides a unified interface for chatting with a language model.
The bundled client drives a local Ollama model through the `ollama run` CLI.
"""

import asyncio
import logging
import subprocess
import time
from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field

from mock_interviewer.config import get_settings
from mock_interviewer.errors import ModelInvocationError, ModelTimeoutError

logger = logging.getLogger(__name__)

# Default model for Ollama
DEFAULT_OLLAMA_MODEL = "gpt-oss:20b"


class ChatMessage(BaseModel):
    """A message in a conversation sent to the model."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Role of the speaker")
    content: str = Field(..., description="Message content")


class LLMResponse(BaseModel):
    """Response from an LLM."""

    content: str = Field(..., description="Generated text content")
    finish_reason: str = Field(default="stop", description="Reason for completion")
    usage: dict[str, int] = Field(
        default_factory=dict,
        description="Token usage information",
    )
    model: str = Field(default="", description="Model used for generation")


class OllamaError(ModelInvocationError):
    """Exception raised when Ollama CLI fails."""

    def __init__(self, message: str, return_code: int | None = None, stderr: str = "") -> None:
        super().__init__(message, {"return_code": return_code})
        self.return_code = return_code
        self.stderr = stderr


class LLMClientBase(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            messages: Full ordered conversation, leading system prompt first.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional model-specific parameters. A `timeout` in
                seconds, when given, bounds the whole call including retries.

        Returns:
            Generated response.

        Raises:
            ModelInvocationError: On network errors, rate limits or malformed output.
            ModelTimeoutError: If the call exceeds its time budget.
        """
        ...

    async def close(self) -> None:
        """Close the client and release resources."""
        return None


class LLMClient(LLMClientBase):
    """
    Ollama-based LLM client.

    Uses the Ollama CLI to run a model locally.
    All generation happens through subprocess calls to `ollama run`.
    """

    def __init__(
        self,
        model: str | None = None,
        max_retries: int | None = None,
        timeout: int | None = None,
    ) -> None:
        """
        Initialize the Ollama LLM client.

        Args:
            model: Model name (defaults to settings.llm_model_name).
            max_retries: Number of retries on failure (defaults to settings).
            timeout: Timeout in seconds for Ollama commands (defaults to settings).
        """
        settings = get_settings()
        self._model = model or settings.llm_model_name or DEFAULT_OLLAMA_MODEL
        self._max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._timeout = timeout or settings.llm_timeout

        logger.info(f"Initialized Ollama LLM client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    def _build_prompt_from_messages(self, messages: list[ChatMessage]) -> str:
        """
        Build a single prompt string from a list of messages.

        Args:
            messages: List of conversation messages.

        Returns:
            Formatted prompt string.
        """
        prompt_parts = [f"[{msg.role.upper()}]\n{msg.content.strip()}\n" for msg in messages]

        # Add a final marker to indicate where the assistant should respond
        prompt_parts.append("[ASSISTANT]\n")

        return "\n".join(prompt_parts)

    def _run_ollama_sync(self, prompt: str, deadline: float | None = None) -> str:
        """
        Run Ollama CLI synchronously with retry logic.

        Args:
            prompt: The prompt to send to the model.
            deadline: time.monotonic() value after which no attempt is started
                and the running one is killed.

        Returns:
            The model's response text, stripped of whitespace.

        Raises:
            OllamaError: If Ollama fails after all retries.
            ModelTimeoutError: If the last attempt timed out.
        """
        cmd = ["ollama", "run", self._model]

        last_error: ModelInvocationError | None = None
        attempts = 0

        while attempts <= self._max_retries:
            attempt_timeout = self._timeout
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(f"Ollama deadline reached after {attempts} attempt(s)")
                    raise last_error or ModelTimeoutError("Ollama call exceeded its deadline")
                attempt_timeout = min(attempt_timeout, remaining)

            attempts += 1
            try:
                logger.debug(f"Running Ollama (attempt {attempts}): {' '.join(cmd)}")

                # Run ollama with the prompt via stdin
                process = subprocess.run(
                    cmd,
                    input=prompt,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    timeout=attempt_timeout,
                )

            except subprocess.TimeoutExpired:
                logger.warning(f"Ollama timed out after {attempt_timeout:g}s (attempt {attempts})")
                last_error = ModelTimeoutError(f"Ollama timed out after {attempt_timeout:g} seconds")
                continue

            except FileNotFoundError as e:
                error_msg = "Ollama CLI not found. Please install Ollama: https://ollama.ai"
                logger.error(error_msg)
                raise OllamaError(error_msg) from e

            if process.returncode != 0:
                error_msg = process.stderr.strip() or f"Exit code: {process.returncode}"
                logger.warning(f"Ollama failed (attempt {attempts}): {error_msg}")
                last_error = OllamaError(
                    f"Ollama exited with code {process.returncode}",
                    return_code=process.returncode,
                    stderr=process.stderr,
                )
                continue

            response = process.stdout.strip()
            if not response:
                logger.warning(f"Ollama returned empty output (attempt {attempts})")
                last_error = OllamaError("Ollama returned an empty response")
                continue

            logger.debug(f"Ollama response length: {len(response)} chars")
            return response

        # All retries exhausted
        raise last_error or OllamaError("Ollama failed after all retries")

    async def chat(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a chat completion using Ollama.

        Args:
            messages: Conversation history.
            temperature: Sampling temperature (modelfile defaults apply for the CLI).
            max_tokens: Maximum tokens to generate (modelfile defaults apply for the CLI).
            **kwargs: `timeout` in seconds bounds all attempts together; others are ignored.

        Returns:
            Generated response.
        """
        prompt = self._build_prompt_from_messages(messages)
        timeout = kwargs.get("timeout")
        deadline = time.monotonic() + timeout if timeout else None

        # Run the synchronous subprocess call in a thread pool
        loop = asyncio.get_running_loop()
        response_text = await loop.run_in_executor(None, self._run_ollama_sync, prompt, deadline)

        return LLMResponse(
            content=response_text,
            finish_reason="stop",
            usage={},  # Ollama CLI doesn't provide token counts
            model=self._model,
        )
