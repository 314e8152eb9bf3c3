import hashlib
import hmac
import secrets
import string
from typing import Optional

from constants import INVITE_CODE_LENGTH, MEMBER_TOKEN_LENGTH

TOKEN_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
# No I, O, 0 or 1 so codes survive being read aloud
INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def hash_password(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def passwords_match(plaintext: str, digest: Optional[str]) -> bool:
    """Compare a candidate password with a stored digest.

    A missing digest never matches, not even an empty candidate.
    """
    if not digest:
        return False
    return hmac.compare_digest(hash_password(plaintext), digest)


def generate_token(length: int = MEMBER_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))
