"""
CallFlow - Main Application Entry Point

Webhook backend answering inbound calls with an AI receptionist.
Each tenant is a dialed number with its own business configuration.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from callflow import __version__
from callflow.core.config import settings
from callflow.core.logging import setup_logging, get_logger
from callflow.core.exceptions import CallFlowException, AuthenticationError
from callflow.api.routes import health, tenants, webhooks

setup_logging()
logger = get_logger(__name__)

AUDIO_DIR = Path(settings.audio_dir)
AUDIO_DIR.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup and shutdown events
    """
    logger.info("=" * 60)
    logger.info("Starting CallFlow")
    logger.info(f"Version: {__version__}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"API Base URL: {settings.api_base_url}")
    logger.info(f"Limits: {settings.max_call_turns} turns, {settings.max_call_duration_sec}s per call")
    logger.info("=" * 60)

    from callflow.services.redis_service import get_redis, close_redis
    from callflow.services.session_store import initialize_session_store
    from callflow.services.tenant_service import initialize_tenant_service
    from callflow.services.conversation import initialize_conversation_controller
    from callflow.services.call_finalizer import initialize_call_finalizer
    from callflow.services.llm.openai_service import OpenAIService
    from callflow.services.voice.speech_service import SpeechService

    # Shared clients, created once and injected into every service
    redis_client = await get_redis()
    openai_client = AsyncOpenAI(api_key=settings.openai_api_key)

    store = initialize_session_store(redis_client, ttl_seconds=settings.session_ttl_seconds)
    tenant_service = initialize_tenant_service(redis_client)
    speech = SpeechService(openai_client, audio_dir=str(AUDIO_DIR))
    initialize_conversation_controller(
        store=store,
        tenants=tenant_service,
        llm=OpenAIService(openai_client),
        speech=speech
    )
    initialize_call_finalizer(store, speech=speech)

    logger.info("All services initialized successfully")

    yield

    logger.info("Shutting down CallFlow")
    await openai_client.close()
    await close_redis()
    logger.info("Shutdown complete")


app = FastAPI(
    title="CallFlow API",
    description="""
    ## AI Receptionist Backend

    Answers inbound Twilio calls with a language-model receptionist.

    ### Features

    - **Multi-Tenant**: Business name, hours, persona and transfer number per dialed number
    - **Conversation State**: Per-call sessions in Redis with a one-hour expiry
    - **Call Limits**: Configurable maximum turns and duration per call
    - **Human Transfer**: Callers asking for a person are dialed through
    - **Analytics**: Daily per-tenant counters by resolution outcome
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


@app.exception_handler(CallFlowException)
async def callflow_exception_handler(request: Request, exc: CallFlowException):
    """Handle custom CallFlow exceptions"""
    logger.warning(f"CallFlowException: {exc.error_code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(AuthenticationError)
async def auth_exception_handler(request: Request, exc: AuthenticationError):
    """Handle authentication errors"""
    logger.warning(f"AuthenticationError: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"WWW-Authenticate": "ApiKey"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": {"exception": str(exc)} if settings.debug else {}
        }
    )


app.include_router(health.router)
app.include_router(webhooks.router, prefix="/api/v1")
app.include_router(tenants.router, prefix="/api/v1")

app.mount("/audio", StaticFiles(directory=AUDIO_DIR), name="audio")


@app.get("/", include_in_schema=False)
async def root():
    """Service banner"""
    return {
        "service": "CallFlow",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "callflow.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug
    )
