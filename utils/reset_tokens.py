import secrets
from datetime import datetime, timezone, timedelta

RESET_TOKEN_BYTES = 20


def generate_reset_token() -> str:
    """20 random bytes rendered as 40 hex characters."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def get_reset_expiry_time(minutes: int = 60) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)
