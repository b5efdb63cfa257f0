# support_rag/main.py
# Run with: uvicorn --factory support_rag.main:create_app
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from support_rag.api.routes import router
from support_rag.config import AssistantConfig
from support_rag.llm.client import create_generation_client
from support_rag.memory.store import DocumentStore
from support_rag.observability.logger import get_logger, setup_logging
from support_rag.workflow.context_assembler import ContextAssembler

logger = get_logger(__name__)


def create_app(
    config: Optional[AssistantConfig] = None,
    generation_client=None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the chat-widget API.

    `config` defaults to AssistantConfig.from_env(); `generation_client`
    defaults to the provider client named in the config.
    """

    config = config or AssistantConfig.from_env()

    if configure_logging:
        setup_logging(log_level=config.log_level)

    if generation_client is None:
        generation_client = create_generation_client(config)

    app = FastAPI(
        title="Support Widget RAG API",
        description="Knowledge-base chat with full-context / retrieval switching",
        version="1.0.0",
    )

    app.state.config = config
    app.state.document_store = DocumentStore()
    app.state.assembler = ContextAssembler(
        config=config,
        generation_client=generation_client,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every HTTP request with a request id and latency."""

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "request_started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
            },
        )

        start_time = time.time()

        try:
            response = await call_next(request)

        except Exception as e:
            logger.error(
                "request_failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "latency_seconds": round(time.time() - start_time, 3),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        logger.info(
            "request_completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_seconds": round(time.time() - start_time, 3),
            },
        )

        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):

        request_id = getattr(request.state, "request_id", "unknown")

        logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal error occurred. Please try again.",
                "request_id": request_id,
                "error_type": type(exc).__name__,
            },
        )

    @app.get("/")
    async def root():

        return {
            "message": "Support Widget RAG API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics",
        }

    app.include_router(router)

    logger.info(
        "application_startup",
        extra={
            "version": "1.0.0",
            "llm_provider": config.llm_provider,
            "scoring_strategy": config.scoring_strategy,
            "full_context_threshold": config.full_context_threshold,
        },
    )

    return app

