from datetime import timedelta
from starlette.responses import Response

TOKEN_COOKIE_NAME = "token"


def set_token_cookie(response: Response, token: str, max_age_days: int = 365, secure: bool = False):
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=int(timedelta(days=max_age_days).total_seconds()),
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def clear_token_cookie(response: Response, secure: bool = False):
    response.delete_cookie(
        key=TOKEN_COOKIE_NAME,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
