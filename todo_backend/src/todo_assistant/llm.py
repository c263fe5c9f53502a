"""
Model-completion collaborator.

CompletionClient is the narrow interface the orchestrator talks to;
OpenAICompletionClient implements it with the openai SDK (chat completions
with function tools). Timeouts and bounded retries with backoff come from the
SDK and are configured through Settings.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import openai
import structlog

from .errors import ConfigError, UpstreamError
from .settings import Settings, get_settings

logger = structlog.get_logger(__name__)

MISSING_KEY_MESSAGE = "Please set your OpenAI API key in the environment variables."


@dataclass(frozen=True)
class ToolCallRequest:
    """A function call issued by the model; `arguments` is the raw JSON string."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class Completion:
    """One model reply: plain text, a tool call, or both."""

    content: Optional[str] = None
    tool_call: Optional[ToolCallRequest] = None

    def assistant_message(self) -> Dict[str, Any]:
        """
        The assistant turn to echo back before the tool output. Only the
        selected tool call is included, so exactly one tool reply is owed.
        """
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_call is not None:
            message["tool_calls"] = [
                {
                    "id": self.tool_call.id,
                    "type": "function",
                    "function": {"name": self.tool_call.name, "arguments": self.tool_call.arguments},
                }
            ]
        return message


# PUBLIC_INTERFACE
class CompletionClient(ABC):
    """Abstract chat-completion backend."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Completion:
        """
        Send the system prompt followed by `messages`. When `tools` is given
        the model may answer with a tool call instead of text.

        Raises:
            UpstreamError: the completion request failed.
        """


class OpenAICompletionClient(CompletionClient):
    """CompletionClient backed by OpenAI chat completions."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: Optional[openai.OpenAI] = None

    def _get_client(self) -> openai.OpenAI:
        if self._client is None:
            self._client = openai.OpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.openai_timeout_seconds,
                max_retries=self._settings.openai_max_retries,
            )
        return self._client

    def complete(
        self,
        system_prompt: str,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Completion:
        request: Dict[str, Any] = {
            "model": self._settings.openai_model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self._settings.openai_temperature,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        try:
            response = self._get_client().chat.completions.create(**request)
        except openai.OpenAIError as exc:
            logger.error("Model completion failed", model=self._settings.openai_model, error=type(exc).__name__)
            raise UpstreamError("Model completion failed") from exc

        if not response.choices:
            raise UpstreamError("Model returned no choices")
        message = response.choices[0].message

        tool_call = None
        for call in message.tool_calls or []:
            if call.type == "function":
                tool_call = ToolCallRequest(id=call.id, name=call.function.name, arguments=call.function.arguments)
                break

        usage = response.usage
        logger.debug(
            "Model completion received",
            model=self._settings.openai_model,
            tool=tool_call.name if tool_call else None,
            total_tokens=usage.total_tokens if usage else 0,
        )
        return Completion(content=message.content, tool_call=tool_call)


# PUBLIC_INTERFACE
def get_completion_client() -> CompletionClient:
    """
    Return a completion client for the configured model.

    Raises:
        ConfigError: OPENAI_API_KEY is unset or still the placeholder value.
    """
    settings = get_settings()
    if not settings.has_model_credentials:
        raise ConfigError(MISSING_KEY_MESSAGE)
    return OpenAICompletionClient(settings)
