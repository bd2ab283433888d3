from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobalign.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    RequestLoggingMiddleware,
    install_error_handlers,
)
from jobalign.models.ai_settings import get_settings
from jobalign.routers import context, copilot, sessions
from jobalign.utils.logging_config import configure_for_environment, get_logger

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        f"JobAlign API starting - LLM: {settings.llm.model_name}, embeddings: {settings.embedding.model_name}, "
        f"Ollama: {settings.llm.base_url}"
    )
    yield
    logger.info("JobAlign API shutting down")


app = FastAPI(title="JobAlign RAG API", version=VERSION, lifespan=lifespan)

# Middleware runs LIFO: the exception handler wraps the logging middleware so request ids are set first
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)
install_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    return {"message": "Welcome to the JobAlign RAG API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(context.router, prefix="/api/sessions", tags=["context"])
app.include_router(copilot.router, prefix="/api/sessions", tags=["copilot"])

logger.info("JobAlign API initialized")
