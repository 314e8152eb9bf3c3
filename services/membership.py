import hmac
from datetime import datetime
from typing import Callable, Optional

from backend import RedisBackend
from credentials import generate_token
from errors import NotFoundError
from logging_config import get_logger
from models import Membership, to_iso

logger = get_logger(__name__)


class MembershipLedger:
    """Per-room member tokens.

    A member name holds exactly one live token per room: joining again under
    the same name replaces the stored token, so whatever was issued before
    stops verifying.
    """

    def __init__(self, backend: RedisBackend, token_factory: Callable[[], str] = generate_token):
        self.backend = backend
        self.token_factory = token_factory

    def issue_token(self) -> str:
        return self.token_factory()

    def join(self, room_id: int, member_name: str, now: datetime) -> str:
        token = self.issue_token()

        def build(existing: Optional[dict]) -> dict:
            joined_at = Membership.from_redis(room_id, member_name, existing).joined_at if existing else now
            return Membership(
                room_id=room_id,
                member_name=member_name,
                member_token=token,
                joined_at=joined_at,
                last_seen_at=now,
            ).to_redis()

        if not self.backend.put_member(room_id, member_name, build):
            raise NotFoundError("Room not found", code="room_not_found")
        logger.info(f"{member_name} joined room {room_id}")
        return token

    def get(self, room_id: int, member_name: str) -> Optional[Membership]:
        record = self.backend.get_member(room_id, member_name)
        return Membership.from_redis(room_id, member_name, record) if record else None

    def verify(self, room_id: int, member_name: str, token: str, now: datetime) -> bool:
        """Check a member's token and, on success, record the member as seen."""
        membership = self.get(room_id, member_name)
        if membership is None or not token:
            logger.debug(f"No membership for {member_name} in room {room_id}")
            return False
        if not hmac.compare_digest(membership.member_token.encode("utf-8"), token.encode("utf-8")):
            logger.debug(f"Stale or wrong token for {member_name} in room {room_id}")
            return False

        def build(existing: Optional[dict]) -> dict:
            # Keep whatever token is current now; a concurrent re-join wins
            record = dict(existing or membership.to_redis())
            record["last_seen_at"] = to_iso(now)
            return record

        self.backend.put_member(room_id, member_name, build)
        return True
