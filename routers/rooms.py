from fastapi import APIRouter, Depends, Request
from schemas.rooms import (
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    OwnerActionRequest,
    RotatePasswordRequest,
    RotateInviteResponse,
    OkResponse,
    RoomSummary,
    RoomListResponse,
)
from dependencies import get_gateway, run_housekeeping
from services.gateway import RoomGateway
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"], dependencies=[Depends(run_housekeeping)])


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@rooms_router.get("", response_model=RoomListResponse)
def list_rooms(gateway: RoomGateway = Depends(get_gateway)):
    rooms = gateway.list_rooms()
    logger.debug(f"Listing {len(rooms)} rooms")
    return RoomListResponse(
        rooms=[
            RoomSummary(
                id=room.id,
                name=room.name,
                is_private=room.is_private,
                invite_code=room.invite_code,
                owner_name=room.owner_name,
                last_active_at=room.last_active_at,
                member_count=member_count,
            )
            for room, member_count in rooms
        ]
    )


@rooms_router.post("/create", status_code=201, response_model=CreateRoomResponse)
def create_room(room: CreateRoomRequest, request: Request, gateway: RoomGateway = Depends(get_gateway)):
    # { "name": "Team", "ownerName": "Alice", "isPrivate": false, "password": "optional" }
    logger.info(f"Room creation request from {_client_host(request)}, name: {room.name}, private: {room.is_private}")
    access = gateway.create_room(room.name, room.owner_name, room.is_private, room.password)
    return CreateRoomResponse(
        room_id=access.room.id,
        room_name=access.room.name,
        invite_code=access.room.invite_code,
        owner_name=access.room.owner_name,
        member_token=access.member_token,
        is_owner=True,
    )


@rooms_router.post("/join", response_model=JoinRoomResponse)
def join_room(join_room_request: JoinRoomRequest, request: Request, gateway: RoomGateway = Depends(get_gateway)):
    # identifier may be the room name, its invite code (any case) or its numeric id
    logger.info(
        f"Join room request for {join_room_request.identifier!r} from {_client_host(request)}, "
        f"member_name: {join_room_request.member_name}"
    )
    access = gateway.join_room(join_room_request.identifier, join_room_request.member_name, join_room_request.password)
    logger.info(f"{access.member_name} joined room {access.room.id} (owner={access.is_owner})")
    return JoinRoomResponse(
        room_id=access.room.id,
        room_name=access.room.name,
        invite_code=access.room.invite_code,
        owner_name=access.room.owner_name,
        is_private=access.room.is_private,
        member_name=access.member_name,
        member_token=access.member_token,
        is_owner=access.is_owner,
    )


@rooms_router.post("/{room_id}/regenerate-invite", response_model=RotateInviteResponse)
def regenerate_invite(room_id: int, body: OwnerActionRequest, gateway: RoomGateway = Depends(get_gateway)):
    logger.info(f"Invite rotation request for room {room_id} by {body.member_name}")
    invite_code = gateway.rotate_invite(room_id, body.member_name, body.member_token)
    return RotateInviteResponse(invite_code=invite_code)


@rooms_router.post("/{room_id}/regenerate-password", response_model=OkResponse)
def regenerate_password(room_id: int, body: RotatePasswordRequest, gateway: RoomGateway = Depends(get_gateway)):
    logger.info(f"Password rotation request for room {room_id} by {body.member_name}")
    gateway.rotate_password(room_id, body.member_name, body.member_token, body.new_password)
    return OkResponse()
