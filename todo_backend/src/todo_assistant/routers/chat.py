from __future__ import annotations

from fastapi import APIRouter, Depends

from ..chat import ConversationOrchestrator
from ..dispatcher import ActionDispatcher
from ..llm import CompletionClient, get_completion_client
from ..repositories import Repository, get_repository
from ..schemas import ChatRequest, ChatResponse
from ..settings import get_todo_defaults

router = APIRouter(
    prefix="/api/v1/chat",
    tags=["chat"],
)


def _get_orchestrator(
    repo: Repository = Depends(get_repository),
    client: CompletionClient = Depends(get_completion_client),
) -> ConversationOrchestrator:
    return ConversationOrchestrator(client, ActionDispatcher(repo, get_todo_defaults()))


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    summary="Chat",
    description=(
        "Send a chat message. The assistant may run one todo action; the reply then "
        "ends with a ✅/❌ line restating the action outcome, and functionCalled / "
        "functionResult describe it. refreshTodos is true when the action may have "
        "changed stored todos."
    ),
    responses={
        200: {"description": "Assistant reply"},
        400: {"description": "OpenAI API key is not configured"},
        500: {"description": "Model or store failure"},
    },
)
def chat(
    payload: ChatRequest,
    orchestrator: ConversationOrchestrator = Depends(_get_orchestrator),
) -> ChatResponse:
    outcome = orchestrator.respond(payload.message, payload.history)
    return ChatResponse(
        message=outcome.message,
        function_called=outcome.function_called,
        function_result=outcome.function_result.to_dict() if outcome.function_result else None,
        refresh_todos=outcome.refresh_todos,
    )
