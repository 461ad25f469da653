from dataclasses import dataclass
from sqlalchemy.orm import Session
from core.exceptions import Unauthenticated
from models.users import User
from services.token_service import TokenService


@dataclass(frozen=True)
class Identity:
    """Who is making the current request, if anyone."""

    user_id: int | None = None
    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> User:
        if self.user is None:
            raise Unauthenticated()
        return self.user


ANONYMOUS = Identity()


def resolve_identity(token: str | None, db: Session, token_service: TokenService) -> Identity:
    """
    Turns a bearer token into an Identity.

    Never raises: a missing, invalid or expired token, or one that names a
    user who no longer exists, all resolve to the anonymous identity.
    Operations that need a user call ``require_user()`` themselves.
    """
    user_id = token_service.decode_token(token)
    if user_id is None:
        return ANONYMOUS

    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        return ANONYMOUS

    return Identity(user_id=user.id, user=user)
