from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from backend import RedisBackend
from constants import (
    EXPIRE_DAYS,
    INVITE_CODE_ATTEMPTS,
    LOBBY_INVITE_CODE,
    LOBBY_NAME,
    LOBBY_OWNER,
    ROOM_ID_MAX_DIGITS,
)
from credentials import generate_invite_code, hash_password
from errors import ConflictError
from logging_config import get_logger
from models import Membership, Room, to_iso

logger = get_logger(__name__)


class RoomDirectory:
    """Owns room records: creation, lookup, listing, activity and expiry."""

    def __init__(self, backend: RedisBackend, invite_factory: Callable[[], str] = generate_invite_code):
        self.backend = backend
        self.invite_factory = invite_factory

    def _reserve_invite_code(self, room_id: int) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = self.invite_factory().upper()
            if self.backend.reserve_invite_code(code, room_id):
                return code
            logger.debug(f"Invite code collision for room {room_id}, drawing another")
        raise RuntimeError(f"Could not allocate a unique invite code for room {room_id}")

    def ensure_seed_room(self, now: datetime):
        if self.backend.get_room_id_by_name(LOBBY_NAME) is not None:
            return
        room_id = self.backend.next_room_id()
        if not self.backend.reserve_room_name(LOBBY_NAME, room_id):
            # Another request seeded it first
            return
        lobby = Room(
            id=room_id,
            name=LOBBY_NAME,
            is_private=False,
            password_hash=None,
            invite_code=LOBBY_INVITE_CODE,
            owner_name=LOBBY_OWNER,
            created_at=now,
            last_active_at=now,
        )
        try:
            self.backend.reserve_invite_code(LOBBY_INVITE_CODE, room_id)
            self.backend.create_room(lobby.to_redis(), now.timestamp())
        except Exception:
            # A dangling reservation would block every later seeding attempt
            logger.error(f"Seeding {LOBBY_NAME} failed, releasing its reservations", exc_info=True)
            self.backend.release_room_name(LOBBY_NAME)
            self.backend.release_invite_code(LOBBY_INVITE_CODE)
            raise
        logger.info(f"Seeded {LOBBY_NAME} room as {room_id}")

    def expire_stale_rooms(self, now: datetime, threshold_days: int = EXPIRE_DAYS) -> List[int]:
        cutoff = now - timedelta(days=threshold_days)
        lobby_id = self.backend.get_room_id_by_name(LOBBY_NAME)
        expired = []
        for room_id in self.backend.get_stale_room_ids(cutoff.timestamp()):
            if room_id == lobby_id:
                continue
            if self.backend.delete_room(room_id):
                expired.append(room_id)
        if expired:
            logger.info(f"Expired {len(expired)} rooms inactive since {to_iso(cutoff)}: {expired}")
        return expired

    def create_room(
        self,
        name: str,
        owner_name: str,
        is_private: bool,
        password: Optional[str],
        owner_token: str,
        now: datetime,
    ) -> Room:
        """Create a room and enroll its owner as the first member.

        The name and invite code are reserved first; the room and the owner's
        membership are then written together. Reservations are released if
        that write fails, so no half-created room is left behind.
        """
        room_id = self.backend.next_room_id()
        if not self.backend.reserve_room_name(name, room_id):
            raise ConflictError(f"Room name '{name}' is already taken", code="room_name_taken")

        invite_code = None
        try:
            invite_code = self._reserve_invite_code(room_id)
            room = Room(
                id=room_id,
                name=name,
                is_private=is_private,
                password_hash=hash_password(password) if is_private else None,
                invite_code=invite_code,
                owner_name=owner_name,
                created_at=now,
                last_active_at=now,
            )
            owner = Membership(
                room_id=room_id,
                member_name=owner_name,
                member_token=owner_token,
                joined_at=now,
                last_seen_at=now,
            )
            self.backend.create_room(room.to_redis(), now.timestamp(), owner_name, owner.to_redis())
        except Exception:
            logger.error(f"Creating room '{name}' failed, releasing its reservations", exc_info=True)
            self.backend.release_room_name(name)
            if invite_code:
                self.backend.release_invite_code(invite_code)
            raise

        logger.info(f"Room {room_id} '{name}' created by {owner_name} (private={is_private})")
        return room

    def get_room(self, room_id: int) -> Optional[Room]:
        data = self.backend.get_room(room_id)
        return Room.from_redis(data) if data else None

    def find_room(self, identifier: str) -> Optional[Room]:
        """Resolve a room by exact name, then invite code, then numeric id."""
        room_id = self.backend.get_room_id_by_name(identifier)
        if room_id is None:
            room_id = self.backend.get_room_id_by_invite(identifier.upper())
        # Only plain ASCII digits of a sane length can be a room id
        if room_id is None and identifier.isascii() and identifier.isdigit() and len(identifier) <= ROOM_ID_MAX_DIGITS:
            room_id = int(identifier)
        if room_id is None:
            return None
        return self.get_room(room_id)

    def list_rooms(self) -> List[Tuple[Room, int]]:
        return [(Room.from_redis(data), count) for data, count in self.backend.list_rooms()]

    def touch_activity(self, room_id: int, timestamp: datetime) -> bool:
        return self.backend.touch_room(room_id, to_iso(timestamp), timestamp.timestamp())

    def rotate_invite(self, room_id: int, now: datetime) -> Optional[str]:
        new_code = self._reserve_invite_code(room_id)
        if not self.backend.replace_invite_code(room_id, new_code, to_iso(now), now.timestamp()):
            self.backend.release_invite_code(new_code)
            return None
        logger.info(f"Room {room_id} invite code rotated")
        return new_code

    def rotate_password(self, room_id: int, new_password: str, now: datetime) -> bool:
        rotated = self.backend.set_room_password(room_id, hash_password(new_password), to_iso(now), now.timestamp())
        if rotated:
            logger.info(f"Room {room_id} password rotated")
        return rotated
