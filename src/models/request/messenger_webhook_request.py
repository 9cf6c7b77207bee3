from typing import Any, Dict, Optional, List
from pydantic import BaseModel, ConfigDict, Field


class MessengerParticipant(BaseModel):
    model_config = ConfigDict(extra='allow')

    id: str


class MessengerPostback(BaseModel):
    model_config = ConfigDict(extra='allow')

    payload: Optional[str] = None
    title: Optional[str] = None


class MessengerMessage(BaseModel):
    model_config = ConfigDict(extra='allow')

    mid: Optional[str] = None
    text: Optional[str] = None


class MessagingEvent(BaseModel):
    """
    A single messaging event inside a webhook entry.
    Carries either a postback (button tap) or a message (free text).
    Delivery and read receipts arrive with neither.
    """
    model_config = ConfigDict(extra='allow')

    sender: MessengerParticipant
    recipient: Optional[MessengerParticipant] = None
    timestamp: Optional[int] = None
    message: Optional[MessengerMessage] = None
    postback: Optional[MessengerPostback] = None
    delivery: Optional[Dict[str, Any]] = None
    read: Optional[Dict[str, Any]] = None

    @property
    def is_receipt(self) -> bool:
        return (self.delivery is not None or self.read is not None) and self.message is None and self.postback is None


class MessengerEntry(BaseModel):
    model_config = ConfigDict(extra='allow')

    id: Optional[str] = None
    time: Optional[int] = None
    # Validated one event at a time so a malformed event does not reject the batch
    messaging: List[Any] = Field(default_factory=list)


class MessengerWebhookRequest(BaseModel):
    """
    Request model for webhook deliveries from the Messenger platform.
    """
    object: str = Field(..., description="Subscription object, 'page' for Messenger")
    entry: List[MessengerEntry] = Field(default_factory=list)

    model_config = ConfigDict(
        extra='allow',
        json_schema_extra={
            "example": {
                "object": "page",
                "entry": [
                    {
                        "id": "PAGE_ID",
                        "time": 1700000000000,
                        "messaging": [
                            {
                                "sender": {"id": "USER_PSID"},
                                "recipient": {"id": "PAGE_ID"},
                                "timestamp": 1700000000000,
                                "postback": {"title": "Next", "payload": "b1"}
                            }
                        ]
                    }
                ]
            }
        }
    )
