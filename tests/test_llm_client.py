import subprocess
from types import SimpleNamespace

import pytest

from mock_interviewer.errors import ModelInvocationError, ModelTimeoutError
from mock_interviewer.models import llm_client
from mock_interviewer.models.llm_client import ChatMessage, LLMClient, OllamaError


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(["ollama"], returncode, stdout=stdout, stderr=stderr)


MESSAGES = [
    ChatMessage(role="system", content="You are an interviewer."),
    ChatMessage(role="assistant", content="Welcome."),
    ChatMessage(role="user", content="  Thanks!  "),
]


def test_prompt_lists_roles_in_order() -> None:
    client = LLMClient(model="test-model")

    prompt = client._build_prompt_from_messages(MESSAGES)

    assert prompt == (
        "[SYSTEM]\nYou are an interviewer.\n\n"
        "[ASSISTANT]\nWelcome.\n\n"
        "[USER]\nThanks!\n\n"
        "[ASSISTANT]\n"
    )


@pytest.mark.asyncio
async def test_chat_returns_stripped_output(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        seen["input"] = kwargs["input"]
        return _completed(stdout="  Tell me about yourself.\n")

    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", timeout=5)

    response = await client.chat(MESSAGES)

    assert response.content == "Tell me about yourself."
    assert response.model == "test-model"
    assert seen["cmd"] == ["ollama", "run", "test-model"]
    assert seen["input"].endswith("[ASSISTANT]\n")


def test_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", timeout=1, max_retries=0)

    with pytest.raises(ModelTimeoutError):
        client._run_ollama_sync("prompt")


def test_non_zero_exit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        llm_client.subprocess,
        "run",
        lambda cmd, **kwargs: _completed(returncode=1, stderr="model not found"),
    )
    client = LLMClient(model="missing-model", max_retries=0)

    with pytest.raises(OllamaError) as exc_info:
        client._run_ollama_sync("prompt")

    assert exc_info.value.return_code == 1
    assert exc_info.value.stderr == "model not found"
    assert isinstance(exc_info.value, ModelInvocationError)


def test_empty_output(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm_client.subprocess, "run", lambda cmd, **kwargs: _completed(stdout="  \n"))
    client = LLMClient(model="test-model", max_retries=0)

    with pytest.raises(OllamaError, match="empty"):
        client._run_ollama_sync("prompt")


def test_missing_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", max_retries=3)

    with pytest.raises(OllamaError, match="not found"):
        client._run_ollama_sync("prompt")


def test_retries_then_succeeds(monkeypatch: pytest.MonkeyPatch) -> None:
    outputs = [_completed(returncode=1, stderr="busy"), _completed(stdout="Second try")]
    calls: list[str] = []

    def fake_run(cmd, **kwargs):
        calls.append(kwargs["input"])
        return outputs.pop(0)

    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", max_retries=1)

    assert client._run_ollama_sync("prompt") == "Second try"
    assert len(calls) == 2


def test_deadline_stops_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [0.0]
    timeouts: list[float] = []

    def fake_run(cmd, **kwargs):
        timeouts.append(kwargs["timeout"])
        clock[0] += 3
        return _completed(returncode=1, stderr="busy")

    monkeypatch.setattr(llm_client, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", timeout=10, max_retries=5)

    with pytest.raises(OllamaError):
        client._run_ollama_sync("prompt", deadline=5.0)

    # Each attempt is capped by the time left; none starts after the deadline.
    assert timeouts == [5.0, 2.0]


def test_expired_deadline_runs_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(llm_client, "time", SimpleNamespace(monotonic=lambda: 100.0))
    monkeypatch.setattr(llm_client.subprocess, "run", lambda cmd, **kwargs: calls.append(cmd))
    client = LLMClient(model="test-model", max_retries=2)

    with pytest.raises(ModelTimeoutError):
        client._run_ollama_sync("prompt", deadline=50.0)

    assert calls == []


@pytest.mark.asyncio
async def test_chat_passes_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[float] = []

    def fake_run(cmd, **kwargs):
        seen.append(kwargs["timeout"])
        return _completed(stdout="Hello")

    monkeypatch.setattr(llm_client.subprocess, "run", fake_run)
    client = LLMClient(model="test-model", timeout=120)

    await client.chat(MESSAGES, timeout=2)

    assert 0 < seen[0] <= 2
