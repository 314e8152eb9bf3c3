from fastapi import Depends

from backend import redis_backend
from logging_config import get_logger
from services.gateway import RoomGateway

logger = get_logger(__name__)

room_gateway = RoomGateway(redis_backend)


def get_gateway() -> RoomGateway:
    return room_gateway


def run_housekeeping(gateway: RoomGateway = Depends(get_gateway)):
    """Cleanup is request-triggered; there is no background timer."""
    expired = gateway.housekeeping()
    if expired:
        logger.debug(f"Housekeeping removed rooms {expired}")
