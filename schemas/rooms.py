from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class CamelModel(BaseModel):
    # Clients send and receive camelCase; snake_case is accepted on input too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateRoomRequest(CamelModel):
    name: Optional[str] = None
    owner_name: Optional[str] = None
    is_private: Optional[bool] = False
    password: Optional[str] = None

class CreateRoomResponse(CamelModel):
    ok: bool = True
    room_id: int
    room_name: str
    invite_code: str
    owner_name: str
    member_token: str
    is_owner: bool = True

class JoinRoomRequest(CamelModel):
    identifier: Optional[str] = None
    member_name: Optional[str] = None
    password: Optional[str] = None

class JoinRoomResponse(CamelModel):
    ok: bool = True
    room_id: int
    room_name: str
    invite_code: str
    owner_name: str
    is_private: bool
    member_name: str
    member_token: str
    is_owner: bool

class OwnerActionRequest(CamelModel):
    member_name: Optional[str] = None
    member_token: Optional[str] = None

class RotatePasswordRequest(OwnerActionRequest):
    new_password: Optional[str] = None

class RotateInviteResponse(CamelModel):
    ok: bool = True
    invite_code: str

class OkResponse(CamelModel):
    ok: bool = True

class RoomSummary(CamelModel):
    id: int
    name: str
    is_private: bool
    invite_code: str
    owner_name: str
    last_active_at: datetime
    member_count: int

class RoomListResponse(CamelModel):
    rooms: list[RoomSummary]
