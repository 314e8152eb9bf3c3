"""Request-level policy for rooms and messages.

Every API call lands here. The gateway resolves rooms through the directory,
checks identity through the membership ledger and only then writes. It keeps
no state of its own; time and randomness come in through the constructor.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from backend import RedisBackend
from constants import EXPIRE_DAYS, MAX_MSG, MAX_NAME, MAX_ROOM, MESSAGE_HISTORY_LIMIT, MIN_PASSWORD
from credentials import generate_invite_code, generate_token, passwords_match
from errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from logging_config import get_logger
from models import Message, Room
from services.directory import RoomDirectory
from services.membership import MembershipLedger
from services.messages import MessageLog

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


@dataclass
class RoomAccess:
    room: Room
    member_name: str
    member_token: str
    is_owner: bool


class RoomGateway:
    def __init__(
        self,
        backend: RedisBackend,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[], str] = generate_token,
        invite_factory: Callable[[], str] = generate_invite_code,
        expire_days: int = EXPIRE_DAYS,
    ):
        self.clock = clock
        self.expire_days = expire_days
        self.directory = RoomDirectory(backend, invite_factory=invite_factory)
        self.members = MembershipLedger(backend, token_factory=token_factory)
        self.messages = MessageLog(backend)

    def housekeeping(self) -> List[int]:
        """Seed the Lobby and drop stale rooms; runs before every API request."""
        now = self.clock()
        self.directory.ensure_seed_room(now)
        return self.directory.expire_stale_rooms(now, self.expire_days)

    def list_rooms(self) -> List[Tuple[Room, int]]:
        return self.directory.list_rooms()

    def create_room(self, name: Optional[str], owner_name: Optional[str], is_private: bool, password: Optional[str]) -> RoomAccess:
        name = _clean(name)
        owner_name = _clean(owner_name)
        password = _clean(password)
        is_private = bool(is_private)

        if not name or not owner_name:
            raise ValidationError("name and ownerName are required", code="missing_fields")
        if len(name) > MAX_ROOM or len(owner_name) > MAX_NAME:
            raise ValidationError("name too long", code="name_too_long")
        if is_private and len(password) < MIN_PASSWORD:
            raise ValidationError(f"password min {MIN_PASSWORD} chars", code="password_too_short")

        token = self.members.issue_token()
        room = self.directory.create_room(name, owner_name, is_private, password, token, self.clock())
        return RoomAccess(room=room, member_name=owner_name, member_token=token, is_owner=True)

    def join_room(self, identifier: Optional[str], member_name: Optional[str], password: Optional[str]) -> RoomAccess:
        identifier = _clean(identifier)
        member_name = _clean(member_name)
        password = _clean(password)

        if not identifier or not member_name:
            raise ValidationError("identifier and memberName are required", code="missing_fields")
        if len(member_name) > MAX_NAME:
            raise ValidationError("memberName too long", code="name_too_long")

        room = self.directory.find_room(identifier)
        if room is None:
            raise NotFoundError("room not found", code="room_not_found")

        if room.is_private and not passwords_match(password, room.password_hash):
            logger.warning(f"Join rejected for {member_name} in room {room.id}: invalid password")
            raise UnauthorizedError("invalid room password", code="invalid_room_password")

        now = self.clock()
        token = self.members.join(room.id, member_name, now)
        self.directory.touch_activity(room.id, now)
        # Name equality is only reported here; owner operations check the token too
        return RoomAccess(
            room=room,
            member_name=member_name,
            member_token=token,
            is_owner=room.owner_name == member_name,
        )

    def _authorize_owner(self, room_id: int, member_name: str, member_token: str) -> Room:
        room = self.directory.get_room(room_id)
        if room is None:
            raise NotFoundError("room not found", code="room_not_found")
        if room.owner_name != member_name:
            logger.warning(f"{member_name!r} is not the owner of room {room_id}")
            raise ForbiddenError("only owner can do this", code="not_room_owner")
        if not self.members.verify(room_id, member_name, member_token, self.clock()):
            logger.warning(f"Owner token rejected for room {room_id}")
            raise UnauthorizedError("invalid member token", code="invalid_member_token")
        return room

    def rotate_invite(self, room_id: int, member_name: Optional[str], member_token: Optional[str]) -> str:
        room = self._authorize_owner(room_id, _clean(member_name), _clean(member_token))
        invite_code = self.directory.rotate_invite(room.id, self.clock())
        if invite_code is None:
            raise NotFoundError("room not found", code="room_not_found")
        return invite_code

    def rotate_password(self, room_id: int, member_name: Optional[str], member_token: Optional[str], new_password: Optional[str]):
        new_password = _clean(new_password)
        if len(new_password) < MIN_PASSWORD:
            raise ValidationError(f"new password min {MIN_PASSWORD} chars", code="password_too_short")
        room = self._authorize_owner(room_id, _clean(member_name), _clean(member_token))
        if not self.directory.rotate_password(room.id, new_password, self.clock()):
            raise NotFoundError("room not found", code="room_not_found")

    def list_messages(self, room_id: Optional[int]) -> List[Message]:
        if not room_id:
            raise ValidationError("roomId is required", code="missing_fields")
        return self.messages.recent(room_id, MESSAGE_HISTORY_LIMIT)

    def post_message(self, room_id: Optional[int], name: Optional[str], message: Optional[str], member_token: Optional[str]) -> Message:
        name = _clean(name)
        message = _clean(message)
        member_token = _clean(member_token)

        if not room_id or not name or not message:
            raise ValidationError("roomId, name, message are required", code="missing_fields")
        if len(name) > MAX_NAME or len(message) > MAX_MSG:
            raise ValidationError("name/message too long", code="message_too_long")

        now = self.clock()
        if not self.members.verify(room_id, name, member_token, now):
            logger.warning(f"Post rejected for {name} in room {room_id}: not a verified member")
            raise UnauthorizedError("join room first", code="invalid_member_token")

        # append_message also advances the room's activity
        return self.messages.append(room_id, name, message, now)
