from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

# Item type tags emitted by the flow editor
TEXT_ITEM_TYPE = "messengerTextVue"
VIDEO_ITEM_TYPE = "messengerVideoVue"

class FlowButton(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    id: Optional[str] = None
    text: Optional[str] = None

class FlowItem(BaseModel):
    """
    A renderable item of a node. The type tag selects which optional fields apply:
    text items use text/buttons, video items use video_url/link/number.
    """
    model_config = ConfigDict(frozen=True, extra='allow')

    id: Optional[str] = None
    type: str
    text: Optional[str] = None
    buttons: Optional[List[FlowButton]] = None
    video_url: Optional[str] = None
    link: Optional[str] = None
    number: Optional[str] = None

class FlowNode(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    id: str
    type: str = ""
    label: str = ""
    items: List[FlowItem] = Field(default_factory=list)

    @property
    def first_item(self) -> Optional[FlowItem]:
        return self.items[0] if self.items else None

class FlowEdge(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    id: Optional[str] = None
    source: str
    target: str

class FlowElements(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    edges: List[FlowEdge]

class FlowData(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    messages: List[FlowNode]
    elements: FlowElements
