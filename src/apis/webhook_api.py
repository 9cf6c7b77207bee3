from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from slowapi import Limiter
from typing import Optional

# Utils
from utils.log_utils import LogUtil
from utils.environment_utils import EnvironmentUtils
from utils.rate_limit_utils import webhook_rate_limit

# Services
from services.webhook_service import WebhookService

# Models
from models.request.messenger_webhook_request import MessengerWebhookRequest
from models.response.webhook_message_response import WebhookMessageResponse


def create_webhook_api(
    log_util: LogUtil,
    environment_utils: EnvironmentUtils,
    webhook_service: WebhookService,
    limiter: Limiter
) -> APIRouter:
    """
    Create API router for the Messenger webhook: the subscription handshake
    and the event delivery endpoint.
    """
    router = APIRouter(
        prefix="/webhook",
        tags=["webhook"],
    )

    webhook_limit = webhook_rate_limit(
        max_requests=environment_utils.get_env_variable("MAX_WEBHOOK_REQUESTS_PER_WINDOW"),
        window_seconds=environment_utils.get_env_variable("WEBHOOK_RATE_LIMIT_WINDOW_SECONDS")
    )

    @router.get("")
    async def verify_webhook(
        mode: Optional[str] = Query(None, alias="hub.mode"),
        token: Optional[str] = Query(None, alias="hub.verify_token"),
        challenge: Optional[str] = Query(None, alias="hub.challenge")
    ):
        """
        Answer the Messenger subscription handshake by echoing hub.challenge
        when the verify token matches.
        """
        verify_token = environment_utils.get_env_variable("VERIFY_TOKEN")
        if mode == "subscribe" and verify_token and token == verify_token:
            log_util.info(service_name="WebhookAPI", message="Webhook verified successfully")
            return PlainTextResponse(content=challenge or "", status_code=200)

        log_util.warning(service_name="WebhookAPI", message=f"Webhook verification failed: mode={mode}")
        return JSONResponse(status_code=403, content={"error": "Verification failed"})

    @router.post("", response_model=WebhookMessageResponse)
    @limiter.limit(webhook_limit)
    async def receive_webhook(request: Request):
        """
        Process a batch of messaging events.

        Every event is handled independently; the response lists one result
        per event so a failing sender does not hide the others.
        """
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})

        if not isinstance(body, dict) or body.get("object") != "page":
            return JSONResponse(status_code=404, content={"error": "Invalid webhook event"})

        try:
            webhook_request = MessengerWebhookRequest.model_validate(body)
        except ValidationError as e:
            log_util.warning(service_name="WebhookAPI", message=f"Malformed webhook payload: {e}")
            return JSONResponse(status_code=400, content={"error": "Malformed webhook payload"})

        try:
            return await webhook_service.process_webhook(webhook_request)
        except Exception as e:
            log_util.error(service_name="WebhookAPI", message=f"Error processing webhook events: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "message": str(e)}
            )

    return router
