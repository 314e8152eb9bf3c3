from pydantic import Field
from typing import Optional
from datetime import datetime
from schemas.rooms import CamelModel


class PostMessageRequest(CamelModel):
    room_id: Optional[int] = None
    name: Optional[str] = None
    message: Optional[str] = None
    member_token: Optional[str] = None

class MessageResponse(CamelModel):
    id: int
    room_id: int
    name: str
    message: str
    created_at: datetime

class PostMessageResponse(MessageResponse):
    ok: bool = True

class MessageListResponse(CamelModel):
    messages: list[MessageResponse] = Field(default_factory=list)
