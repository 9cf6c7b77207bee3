"""
Conversation Service
Moves a sender through the flow graph for each inbound messaging event.
"""
from enum import Enum
from typing import Optional

# Utils
from utils.log_utils import LogUtil

# Database
from database.flow_db import FlowDB
from database.session_db import SessionDB

# Services
from services.messenger_service import MessengerService
from services.rate_limit_service import RateLimitService
from services.template_builder_service import TemplateBuilderService

# Models
from models.request.messenger_webhook_request import MessagingEvent
from models.user_session import UserSession

RATE_LIMIT_MESSAGE = "You're sending messages too quickly. Please wait a moment before trying again."
ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


class EventOutcome(str, Enum):
    ROUTED = "routed"
    UNRESOLVED = "unresolved"
    RATE_LIMITED = "rate_limited"
    IGNORED = "ignored"


class ConversationService:
    """
    Resolves the next node for an event, sends its template and records the
    event on the sender's session.
    """

    def __init__(
        self,
        log_util: LogUtil,
        flow_db: FlowDB,
        session_db: SessionDB,
        rate_limit_service: RateLimitService,
        template_builder_service: TemplateBuilderService,
        messenger_service: MessengerService
    ):
        self.log_util = log_util
        self.flow_db = flow_db
        self.session_db = session_db
        self.rate_limit_service = rate_limit_service
        self.template_builder_service = template_builder_service
        self.messenger_service = messenger_service

    async def handle_message(self, sender_id: str, event: MessagingEvent) -> EventOutcome:
        """
        Handle one messaging event for a sender.

        Events from the same sender are handled one at a time. Errors after the
        rate check trigger a best-effort apology to the user and are re-raised.
        """
        if event.is_receipt:
            self.log_util.debug(service_name="ConversationService", message=f"Ignoring receipt from {sender_id}")
            return EventOutcome.IGNORED

        async with self.session_db.sender_lock(sender_id):
            return await self._handle_message(sender_id, event)

    async def _handle_message(self, sender_id: str, event: MessagingEvent) -> EventOutcome:
        try:
            session = self.session_db.get_or_create(sender_id)

            if not self.rate_limit_service.allow(session):
                await self.messenger_service.send_text(sender_id, RATE_LIMIT_MESSAGE)
                return EventOutcome.RATE_LIMITED

            await self.messenger_service.mark_seen(sender_id)
            await self.messenger_service.typing_on(sender_id)

            next_node_id = self.resolve_next_node_id(session, event)
            outcome = EventOutcome.UNRESOLVED

            if next_node_id:
                node = self.flow_db.find_node_by_id(next_node_id)
                if node:
                    session.current_node_id = next_node_id
                    build_result = self.template_builder_service.build(node)
                    if build_result.is_fallback:
                        self.log_util.warning(
                            service_name="ConversationService",
                            message=f"Sending fallback template for node {node.id} to {sender_id}: {build_result.error}"
                        )
                    await self.messenger_service.send_template(sender_id, build_result.template)
                    outcome = EventOutcome.ROUTED
                else:
                    self.log_util.warning(
                        service_name="ConversationService",
                        message=f"Target node {next_node_id} does not exist, sender {sender_id} stays at {session.current_node_id}"
                    )

            self.session_db.touch(session)
            await self.messenger_service.typing_off(sender_id)

            self.log_util.info(
                service_name="ConversationService",
                message=f"Handled event for {sender_id}: outcome={outcome.value}, current_node={session.current_node_id}"
            )
            return outcome

        except Exception as e:
            self.log_util.error(
                service_name="ConversationService",
                message=f"Error handling message for {sender_id}: {str(e)}"
            )
            try:
                await self.messenger_service.send_text(sender_id, ERROR_MESSAGE)
            except Exception as notice_error:
                self.log_util.error(
                    service_name="ConversationService",
                    message=f"Error sending error notice to {sender_id}: {str(notice_error)}"
                )
            raise

    def resolve_next_node_id(self, session: UserSession, event: MessagingEvent) -> Optional[str]:
        """
        Pick the target node id for an event.

        A postback follows the first edge out of its payload. Text is matched
        against the current node's button labels, and falls back to the first
        node of the flow when nothing matches.
        """
        if event.postback is not None:
            payload = event.postback.payload
            if not payload:
                return None
            return self._first_target(payload)

        if event.message is not None and event.message.text:
            next_node_id = self._match_button_text(session.current_node_id, event.message.text)
            if not next_node_id:
                next_node_id = self.flow_db.first_node_id
            return next_node_id

        return None

    def _match_button_text(self, current_node_id: str, text: str) -> Optional[str]:
        current_node = self.flow_db.find_node_by_id(current_node_id)
        item = current_node.first_item if current_node else None
        if item is None or not item.buttons:
            return None

        wanted = text.lower()
        for button in item.buttons:
            if button.text is not None and button.text.lower() == wanted:
                if not button.id:
                    return None
                return self._first_target(button.id)
        return None

    def _first_target(self, source_id: str) -> Optional[str]:
        targets = self.flow_db.find_next_nodes(source_id)
        return targets[0] if targets else None
