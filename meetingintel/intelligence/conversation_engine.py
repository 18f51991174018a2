"""
Tool-calling conversation with the report model.

The engine submits the prompt, executes any tools the model asks for,
feeds the results back and repeats until the model answers with text or
the tool-round budget is spent. The whole exchange runs under one overall
deadline.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from meetingintel.core.exceptions import (
    ConfigurationError,
    CRMError,
    GenerationError,
    GenerationTimeoutError,
    ScrapeError,
)
from meetingintel.core.models import AttendeeInput
from meetingintel.data.openai_client import ChatCompletionResult, OpenAIChatClient, ToolCall
from meetingintel.intelligence.cache import SearchCache
from meetingintel.intelligence.contact_matcher import ContactMatcher

logger = structlog.get_logger(__name__)


class ToolKind(str, Enum):
    """Tools the model may call mid-generation."""

    SEARCH_WEB = "search_web"
    SCRAPE_WEBPAGE = "scrape_webpage"
    LOOKUP_CRM_CONTACT = "lookup_crm_contact"


class ConversationPhase(str, Enum):
    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    TOOL_EXECUTION = "tool_execution"
    DONE = "done"


ToolHandler = Callable[[Dict[str, Any]], Any]

TOOL_DEFINITIONS: Dict[ToolKind, Dict[str, Any]] = {
    ToolKind.SEARCH_WEB: {
        "type": "function",
        "function": {
            "name": ToolKind.SEARCH_WEB.value,
            "description": "Search the web for a given query and return top results",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The search query"},
                    "num_results": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 10,
                        "description": "Number of results to return",
                    },
                },
                "required": ["query"],
            },
        },
    },
    ToolKind.SCRAPE_WEBPAGE: {
        "type": "function",
        "function": {
            "name": ToolKind.SCRAPE_WEBPAGE.value,
            "description": "Fetch and extract readable text content from a URL",
            "parameters": {
                "type": "object",
                "properties": {"url": {"type": "string", "description": "The URL to scrape"}},
                "required": ["url"],
            },
        },
    },
    ToolKind.LOOKUP_CRM_CONTACT: {
        "type": "function",
        "function": {
            "name": ToolKind.LOOKUP_CRM_CONTACT.value,
            "description": "Look up a CRM contact by name and optional company",
            "parameters": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Full name of the contact"},
                    "company": {"type": "string", "description": "Company name"},
                },
                "required": ["name"],
            },
        },
    },
}


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of one tool call; ``payload`` is what the model sees."""

    id: str
    name: str
    payload: Any
    error: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        return {
            "role": "tool",
            "tool_call_id": self.id,
            "content": json.dumps(self.payload, default=str),
        }


@dataclass
class ConversationResult:
    content: str
    tool_rounds: int = 0
    phases: List[ConversationPhase] = field(default_factory=list)
    messages: List[Dict[str, Any]] = field(default_factory=list)


class ConversationEngine:
    """
    Bounded multi-turn exchange with tool execution.

    Tools are only advertised while rounds remain; once ``max_tool_rounds``
    rounds have run, any further tool request is ignored and the response
    text is taken as final.
    """

    def __init__(
        self,
        llm: OpenAIChatClient,
        handlers: Mapping[ToolKind, ToolHandler],
        max_tool_rounds: int = 1,
        deadline_seconds: float = 300.0,
        tools_enabled: bool = True,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        missing = [kind.value for kind in ToolKind if kind not in handlers]
        if missing:
            raise ConfigurationError(
                f"No handler registered for tools: {', '.join(missing)}",
                details={"missing": missing},
            )

        self.llm = llm
        self.handlers = dict(handlers)
        self.max_tool_rounds = max(0, max_tool_rounds)
        self.deadline_seconds = deadline_seconds
        self.tools_enabled = tools_enabled
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._clock = clock

    @property
    def tool_definitions(self) -> List[Dict[str, Any]]:
        return [TOOL_DEFINITIONS[kind] for kind in ToolKind]

    def run(self, messages: List[Dict[str, Any]]) -> ConversationResult:
        """
        Drive the conversation to a final answer.

        Raises:
            GenerationTimeoutError: The overall deadline passed
            GenerationError: The model failed or answered with no text
        """
        started = self._clock()
        messages = list(messages)
        phases = [ConversationPhase.INIT]
        rounds = 0

        while True:
            advertise = self.tools_enabled and rounds < self.max_tool_rounds
            phases.append(ConversationPhase.AWAITING_MODEL)
            result = self._call_model(messages, advertise, started)

            if advertise and result.requests_tools:
                phases.append(ConversationPhase.TOOL_EXECUTION)
                messages.append(result.assistant_message())
                for call in result.tool_calls:
                    messages.append(self.execute_tool_call(call).to_message())
                rounds += 1
                logger.info("tool_round_completed", round=rounds, calls=len(result.tool_calls))
                continue

            if result.requests_tools:
                logger.warning("tool_calls_ignored", calls=len(result.tool_calls), rounds=rounds)

            content = (result.content or "").strip()
            if not content:
                raise GenerationError("Model returned an empty report")

            phases.append(ConversationPhase.DONE)
            messages.append({"role": "assistant", "content": content})
            logger.info("conversation_completed", tool_rounds=rounds, chars=len(content))
            return ConversationResult(
                content=content, tool_rounds=rounds, phases=phases, messages=messages
            )

    def _call_model(
        self, messages: List[Dict[str, Any]], advertise: bool, started: float
    ) -> ChatCompletionResult:
        remaining = self.deadline_seconds - (self._clock() - started)
        if remaining <= 0:
            logger.error("generation_deadline_exceeded", deadline_seconds=self.deadline_seconds)
            raise GenerationTimeoutError(
                f"Report generation exceeded {self.deadline_seconds}s deadline",
                deadline_seconds=self.deadline_seconds,
            )

        return self.llm.complete(
            messages,
            tools=self.tool_definitions if advertise else None,
            timeout=remaining,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def execute_tool_call(self, call: ToolCall) -> ToolResult:
        """Run one tool call; every failure becomes an error payload."""
        try:
            kind = ToolKind(call.name)
        except ValueError:
            return self._error_result(call, f"Unknown tool: {call.name}")

        try:
            arguments = json.loads(call.arguments or "{}")
            if not isinstance(arguments, dict):
                raise ValueError("tool arguments must be a JSON object")
        except ValueError as e:
            return self._error_result(call, f"Invalid arguments: {e}")

        try:
            payload = self.handlers[kind](arguments)
        except Exception as e:
            return self._error_result(call, str(e) or type(e).__name__)

        logger.info("tool_call_executed", tool=call.name)
        return ToolResult(id=call.id, name=call.name, payload=payload)

    @staticmethod
    def _error_result(call: ToolCall, message: str) -> ToolResult:
        logger.warning("tool_call_failed", tool=call.name, error=message)
        return ToolResult(id=call.id, name=call.name, payload={"error": message}, error=message)


def build_tool_handlers(
    search_cache: SearchCache,
    scraper=None,
    contact_matcher: Optional[ContactMatcher] = None,
) -> Dict[ToolKind, ToolHandler]:
    """Handler table backed by the research providers."""

    def search_web(args: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = str(args["query"]).strip()
        if not query:
            raise ValueError("query must not be empty")
        limit = max(1, min(int(args.get("num_results") or 5), 10))
        return [r.to_dict() for r in search_cache.get_or_fetch(query, limit)]

    def scrape_webpage(args: Dict[str, Any]) -> Dict[str, Any]:
        if scraper is None:
            raise ScrapeError("Webpage scraping is not available")
        page = scraper.fetch_text(str(args["url"]))
        return {"title": page.title, "content": page.content, "url": page.url}

    def lookup_crm_contact(args: Dict[str, Any]) -> Dict[str, Any]:
        if contact_matcher is None:
            raise CRMError("CRM lookup is not available")
        attendee = AttendeeInput(name=str(args["name"]), company=args.get("company"))
        contact = contact_matcher.find_contact(attendee)
        if contact is None:
            return {"found": False}
        return {
            "found": True,
            "name": contact.full_name,
            "email": contact.email,
            "jobTitle": contact.job_title,
            "company": contact.company,
            "lifecycleStage": contact.lifecycle_stage,
            "linkedinUrl": contact.linkedin_url,
        }

    return {
        ToolKind.SEARCH_WEB: search_web,
        ToolKind.SCRAPE_WEBPAGE: scrape_webpage,
        ToolKind.LOOKUP_CRM_CONTACT: lookup_crm_contact,
    }
