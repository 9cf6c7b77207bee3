from typing import Optional, Dict, Any, List
import httpx

# Utils
from utils.log_utils import LogUtil

# Exceptions
from exceptions.flow_exception import (
    ConfigurationException,
    DeliveryException,
    MessengerApiException,
    MessengerNoResponseException,
    TemplateBuildException,
)

# Models
from models.messenger_template import MessengerTemplate, MessengerButton, MessengerElement, MessengerQuickReply

DEFAULT_GRAPH_API_URL = "https://graph.facebook.com/v19.0/me/messages"

MAX_TEXT_LENGTH = 2000
MAX_BUTTON_TITLE_LENGTH = 20
MAX_BUTTONS = 3
MAX_ELEMENTS = 10
MAX_QUICK_REPLIES = 13

PREPARE_ERROR_MESSAGE = "Sorry, I encountered an error preparing the message. Please try again."


class MessengerService:
    """
    Client for the Messenger Send API.
    Shapes templates into Send API messages and delivers them to a recipient.
    """

    def __init__(
        self,
        log_util: LogUtil,
        page_access_token: str,
        graph_api_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
    ):
        if not page_access_token:
            raise ConfigurationException(message="Page Access Token is required")
        self.log_util = log_util
        self.page_access_token = page_access_token
        self.graph_api_url = graph_api_url or DEFAULT_GRAPH_API_URL
        self.timeout_seconds = timeout_seconds

    def _validate_text(self, text: Optional[str]) -> str:
        if not text:
            return ""
        return text[:MAX_TEXT_LENGTH]

    def _validate_button_title(self, title: Optional[str]) -> str:
        if not title:
            return ""
        return title[:MAX_BUTTON_TITLE_LENGTH]

    def _validate_buttons(self, buttons: Optional[List[MessengerButton]]) -> List[Dict[str, Any]]:
        if not buttons:
            return []
        validated = []
        for button in buttons[:MAX_BUTTONS]:
            button_dict = button.model_dump(exclude_none=True)
            button_dict["title"] = self._validate_button_title(button.title)
            validated.append(button_dict)
        return validated

    def _validate_elements(self, elements: Optional[List[MessengerElement]]) -> List[Dict[str, Any]]:
        if not elements:
            return []
        validated = []
        for element in elements[:MAX_ELEMENTS]:
            element_dict = element.model_dump(exclude_none=True)
            element_dict["title"] = self._validate_text(element.title)
            if element.subtitle:
                element_dict["subtitle"] = self._validate_text(element.subtitle)
            if element.buttons:
                element_dict["buttons"] = self._validate_buttons(element.buttons)
            validated.append(element_dict)
        return validated

    def _validate_quick_replies(self, quick_replies: List[MessengerQuickReply]) -> List[Dict[str, Any]]:
        validated = []
        for reply in quick_replies[:MAX_QUICK_REPLIES]:
            reply_dict = reply.model_dump(exclude_none=True)
            reply_dict["title"] = self._validate_button_title(reply.title)
            validated.append(reply_dict)
        return validated

    def prepare_message(self, template: MessengerTemplate) -> Dict[str, Any]:
        """
        Convert a template into a Send API message body, enforcing platform limits.
        Raises TemplateBuildException when the template is missing required content.
        """
        if template.template_type == "generic":
            return {
                "attachment": {
                    "type": "template",
                    "payload": {
                        "template_type": "generic",
                        "elements": self._validate_elements(template.elements),
                    },
                }
            }

        if template.template_type == "button":
            if not template.text:
                raise TemplateBuildException(message="Button template requires text")
            return {
                "attachment": {
                    "type": "template",
                    "payload": {
                        "template_type": "button",
                        "text": self._validate_text(template.text),
                        "buttons": self._validate_buttons(template.buttons),
                    },
                }
            }

        if template.template_type == "media":
            if not template.attachment or not template.attachment.payload.url:
                raise TemplateBuildException(message="Media template requires a URL")
            return {"attachment": template.attachment.model_dump(exclude_none=True)}

        if template.template_type == "text":
            if not template.text:
                raise TemplateBuildException(message="Text template requires text")
            message: Dict[str, Any] = {"text": self._validate_text(template.text)}
            if template.quick_replies:
                message["quick_replies"] = self._validate_quick_replies(template.quick_replies)
            return message

        raise TemplateBuildException(message=f"Unsupported template type: {template.template_type}")

    async def _post(self, recipient_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not recipient_id:
            raise DeliveryException(message="Recipient ID is required", status_code=400)

        payload = {"recipient": {"id": recipient_id}, **body}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    self.graph_api_url,
                    params={"access_token": self.page_access_token},
                    json=payload,
                    headers={"Content-Type": "application/json"}
                )
        except httpx.TimeoutException:
            self.log_util.error(
                service_name="MessengerService",
                message=f"Timeout calling Messenger API for recipient {recipient_id}"
            )
            raise MessengerNoResponseException(message="No response received from Messenger API")
        except httpx.RequestError as e:
            self.log_util.error(
                service_name="MessengerService",
                message=f"Network error calling Messenger API for recipient {recipient_id}: {str(e)}"
            )
            raise MessengerNoResponseException(message="No response received from Messenger API")

        if response.status_code >= 400:
            self.log_util.error(
                service_name="MessengerService",
                message=f"Messenger API returned error: {response.status_code} - {response.text}"
            )
            raise MessengerApiException(
                message=f"Messenger API error: {response.status_code} - {response.text}",
                response_status=response.status_code,
                response_body=response.text
            )

        try:
            return response.json()
        except ValueError as e:
            raise DeliveryException(message=f"Invalid response from Messenger API: {str(e)}")

    async def send_message(self, recipient_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deliver a raw Send API message body to a recipient.
        """
        return await self._post(recipient_id, {"message": message})

    async def send_template(self, recipient_id: str, template: MessengerTemplate) -> Dict[str, Any]:
        """
        Deliver a template. A template that cannot be shaped is replaced by a
        short apology so the user is not left without a reply.
        """
        try:
            message = self.prepare_message(template)
        except TemplateBuildException as e:
            self.log_util.error(
                service_name="MessengerService",
                message=f"Error preparing {template.template_type} template for recipient {recipient_id}: {e.message}"
            )
            message = {"text": PREPARE_ERROR_MESSAGE}
        return await self.send_message(recipient_id, message)

    async def send_text(self, recipient_id: str, text: str) -> Dict[str, Any]:
        return await self.send_template(recipient_id, MessengerTemplate(template_type="text", text=text))

    async def _send_action(self, recipient_id: str, action: str) -> bool:
        try:
            await self._post(recipient_id, {"sender_action": action})
            return True
        except DeliveryException as e:
            self.log_util.warning(
                service_name="MessengerService",
                message=f"Error sending {action} to {recipient_id}: {e.message}"
            )
            return False

    async def mark_seen(self, recipient_id: str) -> bool:
        return await self._send_action(recipient_id, "mark_seen")

    async def typing_on(self, recipient_id: str) -> bool:
        return await self._send_action(recipient_id, "typing_on")

    async def typing_off(self, recipient_id: str) -> bool:
        return await self._send_action(recipient_id, "typing_off")
