"""
Template Builder Service
Renders a flow node into a channel-agnostic messenger template.
"""
from typing import Optional, List

# Utils
from utils.log_utils import LogUtil

# Exceptions
from exceptions.flow_exception import TemplateBuildException

# Models
from models.flow_data import FlowNode, FlowItem, FlowButton, TEXT_ITEM_TYPE, VIDEO_ITEM_TYPE
from models.messenger_template import (
    MessengerTemplate,
    MessengerButton,
    MessengerElement,
    MessengerDefaultAction,
    MessengerAttachment,
    MessengerAttachmentPayload,
    TemplateBuildResult,
)

MAX_TEXT_LENGTH = 2000
MAX_BUTTON_TITLE_LENGTH = 20
MAX_BUTTONS = 3

NOT_CONFIGURED_MESSAGE = "Sorry, this message is not properly configured."
UNSUPPORTED_ITEM_MESSAGE = "Sorry, I don't understand that message type."
BUILD_ERROR_MESSAGE = "Sorry, I encountered an error processing this message."


class TemplateBuilderService:
    def __init__(self, log_util: LogUtil):
        self.log_util = log_util

    def build(self, node: FlowNode) -> TemplateBuildResult:
        """
        Build the template for a node's first item.

        Never raises: a failure is logged and returned as a plain text
        fallback with the error recorded on the result.
        """
        try:
            return TemplateBuildResult(template=self._build_template(node))
        except Exception as e:
            self.log_util.error(
                service_name="TemplateBuilderService",
                message=f"Error creating template from node {getattr(node, 'id', None)}: {str(e)}"
            )
            return TemplateBuildResult(
                template=MessengerTemplate(template_type="text", text=BUILD_ERROR_MESSAGE),
                error=str(e)
            )

    def _build_template(self, node: FlowNode) -> MessengerTemplate:
        item = node.first_item
        if item is None:
            return MessengerTemplate(template_type="text", text=NOT_CONFIGURED_MESSAGE)

        if item.type == TEXT_ITEM_TYPE:
            return self._build_text_template(item)

        if item.type == VIDEO_ITEM_TYPE:
            template = self._build_video_template(item)
            if template is not None:
                return template

        return MessengerTemplate(template_type="text", text=UNSUPPORTED_ITEM_MESSAGE)

    def _build_text_template(self, item: FlowItem) -> MessengerTemplate:
        text = (item.text or "")[:MAX_TEXT_LENGTH]
        if item.buttons:
            return MessengerTemplate(
                template_type="button",
                text=text,
                buttons=self._build_postback_buttons(item.buttons)
            )
        return MessengerTemplate(template_type="text", text=text)

    def _build_postback_buttons(self, buttons: List[FlowButton]) -> List[MessengerButton]:
        postback_buttons = []
        for button in buttons[:MAX_BUTTONS]:
            if not button.id:
                raise TemplateBuildException(message="Button is missing an id")
            if button.text is None:
                raise TemplateBuildException(message=f"Button {button.id} is missing a title")
            postback_buttons.append(
                MessengerButton(
                    type="postback",
                    title=button.text[:MAX_BUTTON_TITLE_LENGTH],
                    payload=button.id
                )
            )
        return postback_buttons

    def _build_video_template(self, item: FlowItem) -> Optional[MessengerTemplate]:
        if item.video_url:
            return MessengerTemplate(
                template_type="media",
                attachment=MessengerAttachment(
                    type="video",
                    payload=MessengerAttachmentPayload(url=item.video_url)
                )
            )

        if item.link:
            return MessengerTemplate(
                template_type="generic",
                elements=[
                    MessengerElement(
                        title=item.number or "Video",
                        subtitle="Click to watch",
                        default_action=MessengerDefaultAction(type="web_url", url=item.link),
                        buttons=[
                            MessengerButton(type="web_url", url=item.link, title="Watch Video")
                        ]
                    )
                ]
            )

        return None
