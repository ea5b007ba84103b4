"""
FastAPI entry point: stateless HTTP access to the conversation graph.

The client carries the conversation state: each request sends the state it
got back last time and receives the next one. The server keeps nothing
between requests. POST /chat/stream relays the same turn as
Server-Sent Events, one per executed node.

Run locally:
    pip install -e ".[serve]"
    uvicorn convograph.infrastructure.entrypoints.fastapi_app:create_app --factory --port 8000
"""

import json
import logging
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from convograph.application.graph.errors import GraphError, GraphRecursionError
from convograph.application.use_cases.run_conversation_turn import RunConversationTurnUseCase
from convograph.domain.entities.conversation_state import ConversationState

logger = logging.getLogger(__name__)


class MessageModel(BaseModel):
    role: Literal["user", "assistant", "system"]
    text: str


class StateModel(BaseModel):
    messages: list[MessageModel] = Field(default_factory=list)
    sentiment: Literal["positive", "neutral", "negative"] = "neutral"
    calming_response: str | None = None
    summaries: list[str] = Field(default_factory=list)
    route: Literal["chat", "calculator"] | None = None
    domain_allowed: bool | None = None


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    state: StateModel | None = None


class ChatResponse(BaseModel):
    reply: str | None
    state: StateModel


def _load_state(state: Optional[StateModel]) -> ConversationState:
    if state is None:
        return ConversationState.empty()
    return ConversationState.from_dict(state.model_dump())


def _build_default_use_case() -> RunConversationTurnUseCase:
    from convograph.infrastructure.config.logging_config import configure_logging
    from convograph.infrastructure.entrypoints.bootstrap import build_graph, load_settings
    from convograph.infrastructure.observability.langfuse_adapter import (
        create_observability_handler,
    )

    settings = load_settings()
    configure_logging(settings.log_level)
    settings.require_credentials()
    graph = build_graph(settings, create_observability_handler(settings))
    return RunConversationTurnUseCase(graph)


def create_app(use_case: Optional[RunConversationTurnUseCase] = None) -> FastAPI:
    """Build the FastAPI app around *use_case* (wired from the environment if omitted)."""
    use_case = use_case or _build_default_use_case()
    app = FastAPI(title="convograph")

    @app.post("/chat", response_model=ChatResponse)
    async def chat(body: ChatRequest) -> ChatResponse:
        """Run one user turn from the client-supplied state."""
        state = _load_state(body.state)
        try:
            final = await use_case.execute(state, body.message)
        except GraphRecursionError as exc:
            logger.error("Graph did not terminate after %d steps", exc.steps)
            raise HTTPException(status_code=500, detail="graph did not terminate") from exc
        except GraphError as exc:
            logger.error("Turn failed: %s", exc)
            raise HTTPException(status_code=500, detail="turn failed") from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        return ChatResponse(
            reply=RunConversationTurnUseCase.last_reply(final),
            state=StateModel.model_validate(final.to_dict()),
        )

    @app.post("/chat/stream")
    async def chat_stream(body: ChatRequest):
        """Stream one turn as Server-Sent Events: one event per node, then the result."""
        if not body.message.strip():
            raise HTTPException(status_code=422, detail="user_text must be a non-empty string")
        state = _load_state(body.state)

        async def event_stream():
            final = None
            try:
                async for event in use_case.stream(state, body.message):
                    final = event["state"]
                    payload = {k: event[k] for k in ("node", "step", "fields")}
                    yield f"data: {json.dumps(payload)}\n\n"
            except GraphRecursionError as exc:
                logger.error("Streamed graph did not terminate after %d steps", exc.steps)
                yield f"data: {json.dumps({'error': 'graph did not terminate'})}\n\n"
            except GraphError as exc:
                logger.error("Streamed turn failed: %s", exc)
                yield f"data: {json.dumps({'error': 'turn failed'})}\n\n"
            else:
                result = {
                    "reply": RunConversationTurnUseCase.last_reply(final),
                    "state": final.to_dict(),
                }
                yield f"data: {json.dumps(result)}\n\n"
            yield "data: [DONE]\n\n"

        return StreamingResponse(event_stream(), media_type="text/event-stream")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
