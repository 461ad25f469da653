from datetime import datetime, timezone, timedelta
from jose import jwt, JWTError
from core.config import Settings
from utils.logger import get_logger

logger = get_logger(__name__)


class TokenService:
    """
    Signs and verifies the session token.

    The token is signed, not encrypted: the only claim is the user id, so
    nothing secret ever ends up in it.
    """

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expire_days = settings.TOKEN_EXPIRE_DAYS

    def create_token(self, user_id: int, expires_delta: timedelta = None) -> str:
        """
        Creates a session JWT for ``user_id``.

        Args:
            user_id: User's ID
            expires_delta: Token lifetime (default: TOKEN_EXPIRE_DAYS)

        Returns:
            JWT string
        """
        if expires_delta is None:
            expires_delta = timedelta(days=self.expire_days)

        payload = {
            "userId": user_id,
            "exp": datetime.now(timezone.utc) + expires_delta
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str | None) -> int | None:
        """
        Returns the user id carried by ``token``, or None when the token is
        missing, malformed, expired or signed with another key.
        """
        if not token:
            return None

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            logger.debug("Ignoring invalid session token")
            return None

        user_id = payload.get("userId")
        if not isinstance(user_id, int):
            return None

        return user_id
