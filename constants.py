import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", 0))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

MAX_NAME = 40
MAX_ROOM = 60
MAX_MSG = 500
MIN_PASSWORD = 4
EXPIRE_DAYS = 7
MESSAGE_HISTORY_LIMIT = 100

MEMBER_TOKEN_LENGTH = 32
INVITE_CODE_LENGTH = 8
INVITE_CODE_ATTEMPTS = 10

LOBBY_NAME = "Lobby"
LOBBY_INVITE_CODE = "LOBBY000"
LOBBY_OWNER = "system"
ROOM_ID_MAX_DIGITS = 18
