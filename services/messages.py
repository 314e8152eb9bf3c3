from datetime import datetime
from typing import List

from backend import RedisBackend
from constants import MESSAGE_HISTORY_LIMIT
from errors import NotFoundError
from logging_config import get_logger
from models import Message

logger = get_logger(__name__)


class MessageLog:
    def __init__(self, backend: RedisBackend):
        self.backend = backend

    def append(self, room_id: int, name: str, body: str, now: datetime) -> Message:
        message = Message(
            id=self.backend.next_message_id(),
            room_id=room_id,
            name=name,
            message=body,
            created_at=now,
        )
        if not self.backend.append_message(room_id, message.to_redis(), now.timestamp()):
            raise NotFoundError("Room not found", code="room_not_found")
        logger.info(f"Message {message.id} posted to room {room_id} by {name}")
        return message

    def recent(self, room_id: int, limit: int = MESSAGE_HISTORY_LIMIT) -> List[Message]:
        """Up to `limit` latest messages, oldest first."""
        newest_first = self.backend.get_recent_messages(room_id, limit)
        return [Message.from_redis(data) for data in reversed(newest_first)]
