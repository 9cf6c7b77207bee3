import asyncio
from datetime import datetime, timezone
from typing import Any, List, Optional
from pydantic import ValidationError

# Utils
from utils.log_utils import LogUtil

# Services
from services.conversation_service import ConversationService

# Models
from models.request.messenger_webhook_request import MessengerWebhookRequest, MessagingEvent
from models.response.webhook_message_response import WebhookEventResult, WebhookMessageResponse


class WebhookService:
    """
    Service for handling webhook deliveries from the Messenger platform.
    Fans every messaging event out to the conversation service concurrently
    and reports one result per event.
    """

    def __init__(
        self,
        log_util: LogUtil,
        conversation_service: ConversationService
    ):
        self.log_util = log_util
        self.conversation_service = conversation_service

    async def process_webhook(self, request: MessengerWebhookRequest) -> WebhookMessageResponse:
        events: List[Any] = [
            event
            for entry in request.entry
            for event in entry.messaging
        ]

        self.log_util.info(
            service_name="WebhookService",
            message=f"Received webhook with {len(request.entry)} entr(y/ies) and {len(events)} messaging event(s)"
        )

        results = await asyncio.gather(*(self._process_event(event) for event in events))

        return WebhookMessageResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            responses=list(results)
        )

    async def _process_event(self, raw_event: Any) -> WebhookEventResult:
        try:
            event = MessagingEvent.model_validate(raw_event)
        except ValidationError as e:
            sender_id = _raw_sender_id(raw_event)
            self.log_util.warning(
                service_name="WebhookService",
                message=f"Skipping malformed messaging event from sender {sender_id}: {e.error_count()} validation error(s)"
            )
            return WebhookEventResult(sender_id=sender_id, status="error", error="Malformed messaging event")

        sender_id = event.sender.id
        try:
            outcome = await self.conversation_service.handle_message(sender_id, event)
            return WebhookEventResult(sender_id=sender_id, status="success", outcome=outcome.value)
        except Exception as e:
            self.log_util.error(
                service_name="WebhookService",
                message=f"Error processing message for sender {sender_id}: {str(e)}"
            )
            return WebhookEventResult(
                sender_id=sender_id,
                status="error",
                error=str(e) or type(e).__name__
            )


def _raw_sender_id(raw_event: Any) -> Optional[str]:
    if not isinstance(raw_event, dict):
        return None
    sender = raw_event.get("sender")
    if isinstance(sender, dict) and isinstance(sender.get("id"), str):
        return sender["id"]
    return None
