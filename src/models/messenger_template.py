from pydantic import BaseModel, Field
from typing import Optional, List, Literal


class MessengerButton(BaseModel):
    type: Literal["web_url", "postback", "phone_number"]
    title: str
    url: Optional[str] = None
    payload: Optional[str] = None
    phone_number: Optional[str] = None


class MessengerDefaultAction(BaseModel):
    type: str = "web_url"
    url: str


class MessengerElement(BaseModel):
    title: str
    subtitle: Optional[str] = None
    image_url: Optional[str] = None
    default_action: Optional[MessengerDefaultAction] = None
    buttons: Optional[List[MessengerButton]] = None


class MessengerAttachmentPayload(BaseModel):
    url: Optional[str] = None
    is_reusable: Optional[bool] = None


class MessengerAttachment(BaseModel):
    type: Literal["image", "video", "audio", "file"]
    payload: MessengerAttachmentPayload


class MessengerQuickReply(BaseModel):
    content_type: str = "text"
    title: str
    payload: str
    image_url: Optional[str] = None


class MessengerTemplate(BaseModel):
    """
    Channel-agnostic description of an outbound message.
    MessengerService turns it into a Send API message body.
    """
    template_type: Literal["text", "button", "generic", "media"]
    text: Optional[str] = None
    buttons: Optional[List[MessengerButton]] = None
    elements: Optional[List[MessengerElement]] = None
    attachment: Optional[MessengerAttachment] = None
    quick_replies: Optional[List[MessengerQuickReply]] = None


class TemplateBuildResult(BaseModel):
    """
    Result of rendering a node. error is set when the template is a fallback
    produced because rendering failed.
    """
    template: MessengerTemplate
    error: Optional[str] = Field(None, description="Why the fallback template was used")

    @property
    def is_fallback(self) -> bool:
        return self.error is not None
