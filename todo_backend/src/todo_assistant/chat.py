from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import structlog

from .dispatcher import ActionDispatcher, ActionResult
from .llm import CompletionClient
from .schemas import ChatTurn
from .tools import decode_tool_call, tool_catalog

logger = structlog.get_logger(__name__)

FALLBACK_REPLY = "I apologize, but I couldn't process your request. Please try again."

_SYSTEM_PROMPT = """You are an assistant that manages the user's todo list. Be decisive: when the user asks \
for a change, make it right away instead of asking for confirmation. Ask a follow-up question only when a \
search finds several matching todos or the request is genuinely unclear. Keep replies short and confirm \
what was done.

Choosing a function:
- To change a todo, call update_todo_by_title with keywords from its title and the new values.
- To delete a todo, call delete_todo_by_title.
- To mark a todo complete or incomplete, call toggle_todo_by_title.
- Use smart_search_todos, find_todos_by_title or find_todos_by_description only when the user wants to \
find or see todos. A search never changes anything, so never claim a todo was changed after only searching.
- Use the by-ID functions only with an ID returned by an earlier result.

Examples:
- "Change truck to home" -> update_todo_by_title(title="truck", newTitle="Buy home")
- "Delete the TypeScript todo" -> delete_todo_by_title(title="TypeScript")
- "Mark dentist as complete" -> toggle_todo_by_title(title="dentist")

Today's date is {today}. Write due dates as YYYY-MM-DD."""


def build_system_prompt(today: Optional[date] = None) -> str:
    return _SYSTEM_PROMPT.format(today=(today or datetime.now(timezone.utc).date()).isoformat())


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ChatOutcome:
    """Final reply of one chat turn."""

    message: str
    function_called: Optional[str] = None
    function_result: Optional[ActionResult] = None
    refresh_todos: bool = False


def format_reply(summary: Optional[str], result: ActionResult) -> str:
    glyph = "✅" if result.success else "❌"
    return f"{summary or ''}\n\n{glyph} {result.message}"


# PUBLIC_INTERFACE
class ConversationOrchestrator:
    """
    Runs one chat turn: let the model pick at most one action, execute it
    through the dispatcher, then have the model summarize the result.
    """

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: ActionDispatcher,
        system_prompt: Optional[str] = None,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._system_prompt = system_prompt or build_system_prompt()

    def respond(self, message: str, history: Sequence[ChatTurn] = ()) -> ChatOutcome:
        """
        Raises:
            UpstreamError: a model call failed or its tool call could not be decoded.
        """
        messages: List[Dict[str, Any]] = [{"role": t.role, "content": t.content} for t in history]
        messages.append({"role": "user", "content": message})

        selection = self._client.complete(self._system_prompt, messages, tools=tool_catalog())
        if selection.tool_call is None:
            logger.info("Model replied without an action")
            return ChatOutcome(message=selection.content or FALLBACK_REPLY)

        call = decode_tool_call(selection.tool_call.name, selection.tool_call.arguments)
        result = self._dispatcher.execute(call)
        logger.info("Action finished", action=call.kind.value, status=result.status.value)

        follow_up = messages + [
            selection.assistant_message(),
            {
                "role": "tool",
                "tool_call_id": selection.tool_call.id,
                "content": json.dumps(result.to_dict()),
            },
        ]
        summary = self._client.complete(self._system_prompt, follow_up)

        return ChatOutcome(
            message=format_reply(summary.content, result),
            function_called=call.kind.value,
            function_result=result,
            refresh_todos=call.kind.mutates,
        )
