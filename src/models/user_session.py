from pydantic import BaseModel, Field
from typing import Dict, Any
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserSession(BaseModel):
    """
    A sender's position in the flow graph plus activity metadata.
    Lives only in memory, keyed by the messenger sender id.
    """
    sender_id: str = Field(..., description="Messenger page-scoped sender id")
    current_node_id: str = Field(..., description="Node the user is currently at")
    last_interaction: datetime = Field(default_factory=utc_now, description="Last successfully routed event")
    message_count: int = Field(default=0, description="Events routed in the current rate window")
    context: Dict[str, Any] = Field(default_factory=dict, description="Reserved for extensions, unused by routing")
