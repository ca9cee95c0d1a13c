"""
Beacon Server

FastAPI server answering questions from the user's connected sources.

Endpoints (served at the root and under /api):
- GET /health: Health check
- POST /chat: Answer in one JSON response
- POST /chat/stream: Answer as server-sent events

Pipeline:
1. Read per-source access tokens from the request
2. Search each connected source (Confluence, Gmail, Slack)
3. Rerank and condense results per source
4. Generate a grounded answer with the configured LLM
"""

import json
from contextlib import aclosing, asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ValidationError

from . import __version__
from .common.config import BeaconConfig, load_config
from .common.llm_client import LLMClient
from .common.schemas import Reference, Source
from .retriever import Aggregator, ChatPipeline, Synthesizer
from .sources import ConfluenceAdapter, GmailAdapter, SlackAdapter

SOURCE_DISABLED = "disabled"


# =============================================================================
# Request/Response Models
# =============================================================================

class ChatRequest(BaseModel):
    """Chat request; a source is searched only when its token is present"""
    query: str = ""
    confluence_token: Optional[str] = None
    gmail_token: Optional[str] = None
    slack_token: Optional[str] = None
    sources: Dict[str, str] = {}  # On/off flags: {"confluence": "enabled"|"disabled", ...}

    def tokens(self) -> Dict[Source, str]:
        """Tokens of the sources to search; flags only ever remove a source"""
        explicit = {
            Source.WIKI: self.confluence_token,
            Source.MAILBOX: self.gmail_token,
            Source.CHAT: self.slack_token,
        }
        tokens = {}
        for source, token in explicit.items():
            if not token:
                continue
            if self.sources.get(source.value, "").lower() == SOURCE_DISABLED:
                continue
            tokens[source] = token
        return tokens


class ChatResponse(BaseModel):
    """Non-streaming chat response"""
    response: str
    references: List[Reference] = []


# =============================================================================
# Application
# =============================================================================

def build_pipeline(config: BeaconConfig) -> ChatPipeline:
    """Wire adapters, LLM client and retriever components from config"""
    retrieval = config.retrieval
    urls = config.sources
    timeout = retrieval.source_timeout

    adapters = {
        Source.WIKI: ConfluenceAdapter(
            urls.atlassian_api_url, max_chars=retrieval.wiki_max_chars, timeout=timeout,
        ),
        Source.MAILBOX: GmailAdapter(
            urls.gmail_api_url, max_chars=retrieval.mailbox_max_chars, timeout=timeout,
        ),
        Source.CHAT: SlackAdapter(
            urls.slack_api_url, max_chars=retrieval.chat_max_chars, timeout=timeout,
        ),
    }
    aggregator = Aggregator(
        adapters,
        top_k=retrieval.top_k,
        search_limit=retrieval.search_limit,
        timeout=timeout,
        concurrent=retrieval.concurrent,
    )

    llm = LLMClient(
        provider=config.llm.provider,
        model=config.llm.model,
        anthropic_api_key=config.llm.anthropic_api_key or None,
        openai_api_key=config.llm.openai_api_key or None,
        google_api_key=config.llm.google_api_key or None,
    )
    synthesizer = Synthesizer(
        llm,
        max_tokens=config.llm.max_tokens,
        temperature=config.llm.temperature,
        timeout=config.llm.timeout,
    )
    return ChatPipeline(aggregator, synthesizer)


def create_app(
    pipeline: Optional[ChatPipeline] = None,
    config: Optional[BeaconConfig] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        pipeline: Prebuilt pipeline (tests); built from config on startup if omitted
        config: Configuration (loaded from file/env on startup if omitted)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize components on startup"""
        owned = None
        if app.state.pipeline is None:
            print("[Beacon] Starting up...")
            cfg = app.state.config or load_config()
            app.state.config = cfg
            owned = build_pipeline(cfg)
            app.state.pipeline = owned
            print(f"[Beacon] LLM provider: {cfg.llm.provider} ({cfg.llm.model})")
            if owned.synthesizer.has_llm:
                print("[Beacon] LLM client ready")
            else:
                print("[Beacon] LLM client not available (answers will degrade)")
            print(f"[Beacon] Frontend: {cfg.server.frontend_url}")
            print("[Beacon] Ready to answer questions")

        yield

        if owned is not None:
            print("[Beacon] Shutting down...")
            await owned.aggregator.aclose()
            app.state.pipeline = None

    app = FastAPI(
        title="Beacon",
        description="Grounded chat over Confluence, Gmail and Slack",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    router = _build_router()
    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app


async def _parse_chat_request(request: Request) -> ChatRequest:
    body = await request.body()
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON")
    try:
        return ChatRequest.model_validate(data)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid JSON")


def _get_pipeline(request: Request) -> ChatPipeline:
    pipeline = request.app.state.pipeline
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return pipeline


# =============================================================================
# Endpoints
# =============================================================================

def _build_router() -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health(request: Request):
        """Health check endpoint"""
        pipeline = request.app.state.pipeline
        return {
            "status": "ok",
            "llm_available": pipeline.synthesizer.has_llm if pipeline else False,
            "sources": [s.value for s in pipeline.aggregator.sources] if pipeline else [],
        }

    @router.post("/chat", response_model=ChatResponse)
    async def chat(request: Request):
        """Answer a question from the connected sources"""
        pipeline = _get_pipeline(request)
        req = await _parse_chat_request(request)

        answer = await pipeline.answer(req.query, req.tokens())
        return ChatResponse(response=answer.response, references=answer.references)

    @router.post("/chat/stream")
    async def chat_stream(request: Request):
        """
        Answer a question as server-sent events.

        Each frame is ``data: {"type": ...}``; the stream ends after a
        done or error event.
        """
        pipeline = _get_pipeline(request)
        req = await _parse_chat_request(request)

        async def frames() -> AsyncIterator[str]:
            # Client disconnect closes this generator, which closes the LLM stream
            events = pipeline.stream(req.query, req.tokens())
            async with aclosing(events):
                async for event in events:
                    yield event.to_sse()

        return StreamingResponse(
            frames(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    return router


load_dotenv()
app = create_app()


# =============================================================================
# Main
# =============================================================================

def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the server"""
    import uvicorn

    config = load_config()
    server = config.server

    ssl_options = {}
    if server.use_https:
        if server.ssl_certfile and server.ssl_keyfile:
            ssl_options = {
                "ssl_certfile": server.ssl_certfile,
                "ssl_keyfile": server.ssl_keyfile,
            }
        else:
            print("[Beacon] USE_HTTPS set but certificate/key not configured, serving HTTP")

    scheme = "https" if ssl_options else "http"
    print(f"[Beacon] Listening on {scheme}://{host or server.host}:{port or server.port}")
    uvicorn.run(
        create_app(config=config),
        host=host or server.host,
        port=port or server.port,
        **ssl_options,
    )


if __name__ == "__main__":
    run_server()
