"""OpenAI chat completions wrapper used by the conversation engine and the critic."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import openai
import structlog
from openai import OpenAI

from meetingintel.core.config import OpenAIConfig
from meetingintel.core.exceptions import GenerationError, GenerationTimeoutError
from meetingintel.utils.reliability import RetryPolicy

logger = structlog.get_logger(__name__)

RETRYABLE_OPENAI_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A function call requested by the model."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True, slots=True)
class ChatCompletionResult:
    """Text and requested tool calls from one completion."""

    content: Optional[str]
    tool_calls: List[ToolCall] = field(default_factory=list)

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_calls)

    def assistant_message(self) -> Dict[str, Any]:
        """The assistant turn to append to the conversation."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class OpenAIChatClient:
    """Thin wrapper around OpenAI's chat completions with tool support."""

    def __init__(
        self,
        config: OpenAIConfig,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[OpenAI] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._clock = clock
        self.model = config.model
        self.retry_policy = retry_policy or RetryPolicy()
        if client is not None:
            self._client = client
        elif config.api_key:
            # Retries are driven by RetryPolicy, not the SDK
            self._client = OpenAI(api_key=config.api_key, max_retries=0)
        else:
            self._client = None

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletionResult:
        """
        Run one chat completion.

        ``timeout`` is a budget for the whole call: every retry attempt gets
        what is left of it and none starts once it is spent.

        Raises:
            GenerationTimeoutError: The call ran past ``timeout``
            GenerationError: No client configured or the API call failed
        """
        if self._client is None:
            raise GenerationError("OpenAI client not initialized - OPENAI_API_KEY missing")

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        deadline = None if timeout is None else self._clock() + timeout

        def attempt():
            if deadline is None:
                return self._client.chat.completions.create(**request)
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise GenerationTimeoutError(
                    f"OpenAI request exceeded its {timeout}s budget", deadline_seconds=timeout
                )
            return self._client.chat.completions.create(timeout=remaining, **request)

        try:
            completion = self.retry_policy.call(
                attempt,
                retry_on=RETRYABLE_OPENAI_ERRORS,
                give_up_on=(openai.APITimeoutError,),
                deadline_seconds=timeout,
            )
        except GenerationTimeoutError:
            logger.error("openai_deadline_exceeded", model=self.model, timeout=timeout)
            raise
        except openai.APITimeoutError as e:
            logger.error("openai_request_timeout", model=self.model, timeout=timeout)
            raise GenerationTimeoutError(
                f"OpenAI request timed out after {timeout}s", deadline_seconds=timeout
            ) from e
        except openai.OpenAIError as e:
            if deadline is not None and self._clock() >= deadline:
                logger.error("openai_deadline_exceeded", model=self.model, error=str(e))
                raise GenerationTimeoutError(
                    f"OpenAI request exceeded its {timeout}s budget: {e}",
                    deadline_seconds=timeout,
                ) from e
            logger.error("openai_request_failed", model=self.model, error=str(e))
            raise GenerationError(f"OpenAI request failed: {e}") from e

        if not completion.choices:
            raise GenerationError("OpenAI returned no choices")

        message = completion.choices[0].message
        tool_calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=call.function.arguments or "")
            for call in (message.tool_calls or [])
        ]
        logger.debug(
            "openai_completion_received",
            model=self.model,
            tool_calls=len(tool_calls),
            chars=len(message.content or ""),
        )
        return ChatCompletionResult(content=message.content, tool_calls=tool_calls)
