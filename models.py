from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def to_iso(value: datetime) -> str:
    return value.isoformat()


def from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass
class Room:
    id: int
    name: str
    is_private: bool
    password_hash: Optional[str]
    invite_code: str
    owner_name: str
    created_at: datetime
    last_active_at: datetime

    @classmethod
    def from_redis(cls, data: dict) -> "Room":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            is_private=data.get("is_private") == "1",
            password_hash=data.get("password_hash") or None,
            invite_code=data["invite_code"],
            owner_name=data["owner_name"],
            created_at=from_iso(data["created_at"]),
            last_active_at=from_iso(data["last_active_at"]),
        )

    def to_redis(self) -> dict:
        # Redis hashes cannot hold None, so a public room simply has no password_hash field
        data = {
            "id": str(self.id),
            "name": self.name,
            "is_private": "1" if self.is_private else "0",
            "invite_code": self.invite_code,
            "owner_name": self.owner_name,
            "created_at": to_iso(self.created_at),
            "last_active_at": to_iso(self.last_active_at),
        }
        if self.password_hash:
            data["password_hash"] = self.password_hash
        return data


@dataclass
class Membership:
    room_id: int
    member_name: str
    member_token: str
    joined_at: datetime
    last_seen_at: datetime

    @classmethod
    def from_redis(cls, room_id: int, member_name: str, data: dict) -> "Membership":
        return cls(
            room_id=room_id,
            member_name=member_name,
            member_token=data["token"],
            joined_at=from_iso(data["joined_at"]),
            last_seen_at=from_iso(data["last_seen_at"]),
        )

    def to_redis(self) -> dict:
        return {
            "token": self.member_token,
            "joined_at": to_iso(self.joined_at),
            "last_seen_at": to_iso(self.last_seen_at),
        }


@dataclass
class Message:
    id: int
    room_id: int
    name: str
    message: str
    created_at: datetime

    @classmethod
    def from_redis(cls, data: dict) -> "Message":
        return cls(
            id=int(data["id"]),
            room_id=int(data["room_id"]),
            name=data["name"],
            message=data["message"],
            created_at=from_iso(data["created_at"]),
        )

    def to_redis(self) -> dict:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "name": self.name,
            "message": self.message,
            "created_at": to_iso(self.created_at),
        }
