from typing import Optional, List
from pydantic import BaseModel, Field


class WebhookEventResult(BaseModel):
    """
    Outcome of a single messaging event. One sender failing does not
    affect the results of the others in the same delivery.
    """
    sender_id: Optional[str] = Field(None, description="Messenger sender id, missing for malformed events")
    status: str = Field(..., description="success or error")
    outcome: Optional[str] = Field(None, description="routed, unresolved, rate_limited or ignored when status is success")
    error: Optional[str] = Field(None, description="Error details if status is error")


class WebhookMessageResponse(BaseModel):
    """
    Response model for webhook event processing.
    """
    status: str = Field(..., description="Processing status")
    timestamp: str = Field(..., description="ISO-8601 time the delivery was processed")
    responses: List[WebhookEventResult] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "status": "ok",
                "timestamp": "2025-01-01T00:00:00+00:00",
                "responses": [
                    {"sender_id": "USER_PSID", "status": "success", "outcome": "routed", "error": None}
                ]
            }
        }
