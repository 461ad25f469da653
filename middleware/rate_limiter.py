from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from core.config import settings
from services.token_service import TokenService
from utils.deps import read_token

_tokens = TokenService(settings)


def get_user_id(request: Request) -> str:
    """Rate limit per signed-in user, falling back to the client address."""
    user_id = _tokens.decode_token(read_token(request))
    if user_id is not None:
        return f"user:{user_id}"

    return get_remote_address(request)

limiter = Limiter(
    key_func=get_user_id,
    default_limits=["200/hour"],
    enabled=settings.ENV != "testing"
)
