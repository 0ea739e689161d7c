"""
HTTP API adapter for the mentorbot engine.

Architectural role:
- Stand in for the chat platform: one JSON endpoint per user message.
- Expose per-user short-term history inspection and control.
- Delegate all conversation work to `mentorbot.core.engine.ChatEngine`.

Endpoint responsibilities:
- `POST /v1/chat`: run one message through the engine and return the reply.
- `GET /v1/users/{user_id}/history`: window size and current turns.
- `PUT /v1/users/{user_id}/history-limit`: change the window size.
- `DELETE /v1/users/{user_id}/history`: drop short-term turns.

Input validation behavior:
- Request bodies are validated by pydantic (HTTP 422 on shape errors).
- `ValidationError` from the memory layer -> HTTP 400.

Error handling strategy:
- Language-model failures are already mapped to a fallback reply by the engine.
- Unexpected runtime exceptions are not globally wrapped in this module.

Side effects:
- The production engine (embedding model, FAISS index, HTTP LLM client) is
  built lazily on the first request, not at import.
- On shutdown, pending background memory writes are drained.
- Logging is configured only by `serve()`; importing the module or calling
  `create_app()` leaves the root logger alone.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from mentorbot.core.engine import ChatEngine, build_engine
from mentorbot.errors import ValidationError


logger = logging.getLogger(__name__)


# ============================================================
# Request / Response Schemas
# ============================================================

class ChatRequest(BaseModel):
    user_id: str = Field(min_length=1)
    message: str


class ChatResponse(BaseModel):
    reply: str


class HistoryLimitRequest(BaseModel):
    limit: int


# ============================================================
# Application Factory
# ============================================================

def create_app(engine: ChatEngine | None = None) -> FastAPI:
    """Build the FastAPI application around an engine.

    Args:
        engine: Pre-wired engine (tests inject one with fake collaborators).
            When omitted, `build_engine()` runs on first use.
    """
    state = {"engine": engine}

    def get_engine() -> ChatEngine:
        if state["engine"] is None:
            logger.info("Building default chat engine")
            state["engine"] = build_engine()
        return state["engine"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if state["engine"] is not None:
            await state["engine"].aclose()

    app = FastAPI(title="mentorbot", lifespan=lifespan)

    @app.post("/v1/chat", response_model=ChatResponse)
    async def chat(request: ChatRequest):
        reply = await get_engine().process_message(request.user_id, request.message)
        return ChatResponse(reply=reply)

    @app.get("/v1/users/{user_id}/history")
    async def get_history(user_id: str):
        store = get_engine().assembler.turn_store(user_id)
        return {
            "user_id": user_id,
            "limit": store.limit,
            "turns": [turn.as_message() for turn in store.list()],
        }

    @app.put("/v1/users/{user_id}/history-limit")
    async def set_history_limit(user_id: str, request: HistoryLimitRequest):
        try:
            get_engine().assembler.set_limit(user_id, request.limit)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"user_id": user_id, "limit": request.limit}

    @app.delete("/v1/users/{user_id}/history")
    async def clear_history(user_id: str):
        get_engine().assembler.clear(user_id)
        return {"user_id": user_id, "cleared": True}

    return app


def configure_logging():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def serve() -> FastAPI:
    """Production entry point: `uvicorn --factory mentorbot.api.http_api:serve`."""
    configure_logging()
    return create_app()
