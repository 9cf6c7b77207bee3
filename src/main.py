import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

# Utils
from utils.log_utils import LogUtil
from utils.environment_utils import EnvironmentUtils
from utils.rate_limit_utils import create_limiter, create_rate_limit_exceeded_handler

# Database
from database.flow_db import FlowDB
from database.session_db import SessionDB

# Services
from services.messenger_service import MessengerService
from services.rate_limit_service import RateLimitService
from services.template_builder_service import TemplateBuilderService
from services.conversation_service import ConversationService
from services.session_cleanup_service import SessionCleanupService
from services.webhook_service import WebhookService

# APIs
from apis.webhook_api import create_webhook_api

# Utils
log_util = LogUtil()
environment_utils = EnvironmentUtils(log_util=log_util)

# Refuse to start without credentials
environment_utils.validate_required()

# Database
flow_db = FlowDB(log_util=log_util, environment_utils=environment_utils)
flow_db.load()

session_db = SessionDB(
    log_util=log_util,
    flow_db=flow_db,
    session_timeout_seconds=environment_utils.get_env_variable("SESSION_TIMEOUT_SECONDS")
)

# Services
messenger_service = MessengerService(
    log_util=log_util,
    page_access_token=environment_utils.get_env_variable("PAGE_ACCESS_TOKEN"),
    graph_api_url=environment_utils.get_env_variable("GRAPH_API_URL"),
    timeout_seconds=environment_utils.get_env_variable("MESSENGER_TIMEOUT_SECONDS")
)

rate_limit_service = RateLimitService(
    log_util=log_util,
    window_seconds=environment_utils.get_env_variable("RATE_LIMIT_WINDOW_SECONDS"),
    max_messages_per_window=environment_utils.get_env_variable("MAX_MESSAGES_PER_WINDOW")
)

limiter = create_limiter()

template_builder_service = TemplateBuilderService(log_util=log_util)

conversation_service = ConversationService(
    log_util=log_util,
    flow_db=flow_db,
    session_db=session_db,
    rate_limit_service=rate_limit_service,
    template_builder_service=template_builder_service,
    messenger_service=messenger_service
)

webhook_service = WebhookService(
    log_util=log_util,
    conversation_service=conversation_service
)

session_cleanup_service = SessionCleanupService(
    log_util=log_util,
    session_db=session_db,
    check_interval_seconds=environment_utils.get_env_variable("SESSION_CLEANUP_INTERVAL_SECONDS")
)

# Define lifespan function
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await session_cleanup_service.start()
    log_util.info(service_name="MessengerFlowBot", message="Application startup complete")

    yield

    # Shutdown
    await session_cleanup_service.stop()
    session_db.clear()
    log_util.info(service_name="MessengerFlowBot", message="Application shutdown complete")

# Create FastAPI app
app = FastAPI(
    title="messenger flow bot",
    description="Facebook Messenger chatbot driven by a static conversation flow",
    version="1.0.0",
    lifespan=lifespan
)

# Per-address request limit on the webhook
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, create_rate_limit_exceeded_handler(log_util))

# Messenger webhook
webhook_router = create_webhook_api(
    log_util=log_util,
    environment_utils=environment_utils,
    webhook_service=webhook_service,
    limiter=limiter
)
app.include_router(webhook_router)

# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "messenger_flow_bot",
        "active_sessions": session_db.count(),
        "session_cleanup_running": session_cleanup_service.is_running
    }

# Global exception handler for HTTPExceptions
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    log_util.error(service_name="MessengerFlowBot", message=f"HTTPException: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": str(exc),
            "status_code": exc.status_code
        },
        headers={"Content-Type": "application/json"}
    )

# Global exception handler for any unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log_util.error(service_name="MessengerFlowBot", message=f"Exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "status_code": 500
        },
        headers={"Content-Type": "application/json"}
    )

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=environment_utils.get_env_variable("HOST"),
        port=environment_utils.get_env_variable("PORT")
    )
