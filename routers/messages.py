from typing import Optional
from fastapi import APIRouter, Depends, Query
from schemas.messages import PostMessageRequest, PostMessageResponse, MessageResponse, MessageListResponse
from dependencies import get_gateway, run_housekeeping
from services.gateway import RoomGateway
from logging_config import get_logger

logger = get_logger(__name__)

messages_router = APIRouter(prefix="/api/messages", tags=["messages"], dependencies=[Depends(run_housekeeping)])


@messages_router.get("", response_model=MessageListResponse)
def list_messages(
    room_id: Optional[int] = Query(None, alias="roomId", description="Room to read, newest 100 messages oldest first"),
    gateway: RoomGateway = Depends(get_gateway),
):
    messages = gateway.list_messages(room_id)
    logger.debug(f"Returning {len(messages)} messages for room {room_id}")
    return MessageListResponse(
        messages=[
            MessageResponse(id=m.id, room_id=m.room_id, name=m.name, message=m.message, created_at=m.created_at)
            for m in messages
        ]
    )


@messages_router.post("", status_code=201, response_model=PostMessageResponse)
def post_message(body: PostMessageRequest, gateway: RoomGateway = Depends(get_gateway)):
    message = gateway.post_message(body.room_id, body.name, body.message, body.member_token)
    return PostMessageResponse(
        id=message.id,
        room_id=message.room_id,
        name=message.name,
        message=message.message,
        created_at=message.created_at,
    )
