import redis
import json
from typing import Callable, Optional
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB
from redis_keys import (
    REDIS_ROOM_ID_KEY,
    REDIS_META_KEY,
    REDIS_NAMES_KEY,
    REDIS_INVITES_KEY,
    REDIS_ACTIVITY_KEY,
    REDIS_MEMBERS_KEY,
    REDIS_MESSAGES_KEY,
    REDIS_MESSAGE_ID_KEY,
)
from logging_config import get_logger

logger = get_logger(__name__)


def create_redis_client() -> redis.Redis:
    # The client connects lazily, so building it never touches the network
    return redis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        password=REDIS_PASSWORD,
        db=REDIS_DB,
        decode_responses=True,
    )


class RedisBackend:
    """Every read and write against Redis goes through this class.

    Uniqueness of room names and invite codes is enforced with HSETNX on the
    index hashes; writes that must not outlive their room run in a MULTI/EXEC
    transaction that WATCHes the room's meta key.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    def ping(self):
        try:
            self.redis_client.ping()
            logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
        except Exception as e:
            logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
            raise

    def _write_if_room_exists(self, room_id: int, queue_writes: Callable, *extra_watches) -> bool:
        """Queue `queue_writes(pipe)` in one transaction, only if the room still exists."""
        meta_key = REDIS_META_KEY.format(room_id=room_id)

        def apply(pipe):
            if not pipe.exists(meta_key):
                return False
            pipe.multi()
            queue_writes(pipe)
            return True

        return self.redis_client.transaction(apply, meta_key, *extra_watches, value_from_callable=True)

    # --- rooms ---

    def next_room_id(self) -> int:
        return int(self.redis_client.incr(REDIS_ROOM_ID_KEY))

    def reserve_room_name(self, name: str, room_id: int) -> bool:
        return bool(self.redis_client.hsetnx(REDIS_NAMES_KEY, name, room_id))

    def release_room_name(self, name: str):
        self.redis_client.hdel(REDIS_NAMES_KEY, name)

    def reserve_invite_code(self, code: str, room_id: int) -> bool:
        return bool(self.redis_client.hsetnx(REDIS_INVITES_KEY, code, room_id))

    def release_invite_code(self, code: str):
        self.redis_client.hdel(REDIS_INVITES_KEY, code)

    def create_room(self, room_data: dict, activity_score: float, owner_name: Optional[str] = None, owner_record: Optional[dict] = None):
        """Write a room whose name and invite code are already reserved.

        When an owner record is given it is written in the same transaction,
        so the room never exists without its owner's membership.
        """
        room_id = room_data["id"]
        logger.info(f"Creating room {room_id} ({room_data['name']})")
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.hset(REDIS_META_KEY.format(room_id=room_id), mapping=room_data)
        pipe.zadd(REDIS_ACTIVITY_KEY, {str(room_id): activity_score})
        if owner_name is not None:
            pipe.hset(REDIS_MEMBERS_KEY.format(room_id=room_id), owner_name, json.dumps(owner_record))
        pipe.execute()
        logger.debug(f"Room {room_id} written with owner {owner_name}")

    def get_room(self, room_id: int) -> Optional[dict]:
        logger.debug(f"Fetching room {room_id}")
        room_data = self.redis_client.hgetall(REDIS_META_KEY.format(room_id=room_id))
        if not room_data:
            logger.debug(f"Room {room_id} not found in Redis")
            return None
        return room_data

    def get_room_id_by_name(self, name: str) -> Optional[int]:
        room_id = self.redis_client.hget(REDIS_NAMES_KEY, name)
        return int(room_id) if room_id is not None else None

    def get_room_id_by_invite(self, code: str) -> Optional[int]:
        room_id = self.redis_client.hget(REDIS_INVITES_KEY, code)
        return int(room_id) if room_id is not None else None

    def list_rooms(self) -> list:
        """Return (room data, member count) pairs, most recently active first."""
        room_ids = self.redis_client.zrevrange(REDIS_ACTIVITY_KEY, 0, -1)
        if not room_ids:
            return []
        pipe = self.redis_client.pipeline(transaction=False)
        for room_id in room_ids:
            pipe.hgetall(REDIS_META_KEY.format(room_id=room_id))
            pipe.hlen(REDIS_MEMBERS_KEY.format(room_id=room_id))
        results = pipe.execute()
        rooms = []
        for room_data, member_count in zip(results[0::2], results[1::2]):
            # Deleted between the two reads
            if not room_data:
                continue
            rooms.append((room_data, int(member_count)))
        logger.debug(f"Listed {len(rooms)} rooms")
        return rooms

    def get_stale_room_ids(self, cutoff_score: float) -> list:
        stale = self.redis_client.zrangebyscore(REDIS_ACTIVITY_KEY, "-inf", f"({cutoff_score}")
        return [int(room_id) for room_id in stale]

    def touch_room(self, room_id: int, last_active_at: str, activity_score: float) -> bool:
        def writes(pipe):
            pipe.hset(REDIS_META_KEY.format(room_id=room_id), "last_active_at", last_active_at)
            pipe.zadd(REDIS_ACTIVITY_KEY, {str(room_id): activity_score})

        return self._write_if_room_exists(room_id, writes)

    def replace_invite_code(self, room_id: int, new_code: str, last_active_at: str, activity_score: float) -> bool:
        """Point the room at an already reserved code and drop its current one."""
        meta_key = REDIS_META_KEY.format(room_id=room_id)

        def apply(pipe):
            old_code = pipe.hget(meta_key, "invite_code")
            if old_code is None:
                return False
            pipe.multi()
            pipe.hdel(REDIS_INVITES_KEY, old_code)
            pipe.hset(meta_key, mapping={"invite_code": new_code, "last_active_at": last_active_at})
            pipe.zadd(REDIS_ACTIVITY_KEY, {str(room_id): activity_score})
            return True

        return self.redis_client.transaction(apply, meta_key, value_from_callable=True)

    def set_room_password(self, room_id: int, password_hash: str, last_active_at: str, activity_score: float) -> bool:
        def writes(pipe):
            pipe.hset(
                REDIS_META_KEY.format(room_id=room_id),
                mapping={"is_private": "1", "password_hash": password_hash, "last_active_at": last_active_at},
            )
            pipe.zadd(REDIS_ACTIVITY_KEY, {str(room_id): activity_score})

        return self._write_if_room_exists(room_id, writes)

    def delete_room(self, room_id: int) -> bool:
        """Remove a room with its index entries, members and messages in one transaction."""
        logger.info(f"Deleting room {room_id}")
        meta_key = REDIS_META_KEY.format(room_id=room_id)

        def apply(pipe):
            room_data = pipe.hgetall(meta_key)
            pipe.multi()
            if room_data:
                pipe.hdel(REDIS_NAMES_KEY, room_data["name"])
                pipe.hdel(REDIS_INVITES_KEY, room_data["invite_code"])
            pipe.delete(meta_key)
            pipe.delete(REDIS_MEMBERS_KEY.format(room_id=room_id))
            pipe.delete(REDIS_MESSAGES_KEY.format(room_id=room_id))
            pipe.zrem(REDIS_ACTIVITY_KEY, str(room_id))
            return bool(room_data)

        deleted = self.redis_client.transaction(apply, meta_key, value_from_callable=True)
        logger.debug(f"Room {room_id} deleted: existed={deleted}")
        return deleted

    # --- members ---

    def get_member(self, room_id: int, member_name: str) -> Optional[dict]:
        record = self.redis_client.hget(REDIS_MEMBERS_KEY.format(room_id=room_id), member_name)
        return json.loads(record) if record is not None else None

    def put_member(self, room_id: int, member_name: str, build_record: Callable) -> bool:
        """Write the record `build_record(existing_or_None)` if the room still exists."""
        members_key = REDIS_MEMBERS_KEY.format(room_id=room_id)
        meta_key = REDIS_META_KEY.format(room_id=room_id)

        def apply(pipe):
            if not pipe.exists(meta_key):
                return False
            existing = pipe.hget(members_key, member_name)
            record = build_record(json.loads(existing) if existing is not None else None)
            pipe.multi()
            pipe.hset(members_key, member_name, json.dumps(record))
            return True

        stored = self.redis_client.transaction(apply, meta_key, members_key, value_from_callable=True)
        logger.debug(f"Member {member_name} stored in room {room_id}: {stored}")
        return stored

    # --- messages ---

    def next_message_id(self) -> int:
        return int(self.redis_client.incr(REDIS_MESSAGE_ID_KEY))

    def append_message(self, room_id: int, message: dict, activity_score: float) -> bool:
        """Store a message and advance room activity in one transaction."""

        def writes(pipe):
            pipe.lpush(REDIS_MESSAGES_KEY.format(room_id=room_id), json.dumps(message))
            pipe.hset(REDIS_META_KEY.format(room_id=room_id), "last_active_at", message["created_at"])
            pipe.zadd(REDIS_ACTIVITY_KEY, {str(room_id): activity_score})

        stored = self._write_if_room_exists(room_id, writes)
        logger.debug(f"Message {message['id']} appended to room {room_id}: {stored}")
        return stored

    def get_recent_messages(self, room_id: int, limit: int) -> list:
        """Newest first."""
        raw = self.redis_client.lrange(REDIS_MESSAGES_KEY.format(room_id=room_id), 0, limit - 1)
        return [json.loads(item) for item in raw]


redis_backend = RedisBackend(create_redis_client())
