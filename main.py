import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from starlette.middleware.cors import CORSMiddleware

from config import get_settings
from context import RequestContextMiddleware, RequestIdFilter
from routes.assistants import router as assistants_router
from routes.files import download_router as download_router
from routes.files import router as files_router
from routes.threads import router as threads_router
from services.assistant import AssistantService
from services.file_manager import FileManager
from services.thread_manager import ThreadManager

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] [%(request_id)s] %(name)s: %(message)s",
)
for handler in logging.getLogger().handlers:
    handler.addFilter(RequestIdFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.is_configured:
        raise RuntimeError("OPENAI_API_KEY is not set. Add it to your environment or .env file.")

    # Initialize dependencies
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    assistant_service = AssistantService(client, settings)

    app.state.assistant_service = assistant_service
    app.state.file_manager = FileManager(client, assistant_service)
    app.state.thread_manager = ThreadManager(client, assistant_service)

    yield
    # Cleanup resources
    await client.close()


app = FastAPI(title="Resume Rooster API", lifespan=lifespan)

# middleware to set request context
app.add_middleware(RequestContextMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(assistants_router, prefix="/assistants", tags=["assistants"])
app.include_router(files_router, prefix="/assistants/files", tags=["files"])
app.include_router(threads_router, prefix="/assistants/threads", tags=["threads"])
app.include_router(download_router, prefix="/files", tags=["files"])


@app.get("/health")
async def health_check():
    return {"status": "ok", "configured": settings.is_configured}


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"}
    )
