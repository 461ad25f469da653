from datetime import datetime, timezone
from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.orm import Session
from core.config import Settings
from core.exceptions import (DuplicateEmail, NotFound, InvalidCredential, Mismatch,
                             InvalidOrExpiredToken, MailDeliveryFailed)
from models.users import User, Permission
from schemas.auth_schemas import SignupRequest
from services.email_service import EmailService, reset_email_body
from services.identity_service import Identity
from services.permission_service import (require_permission, PERMISSION_UPDATE_ROLES,
                                         USER_LIST_ROLES)
from services.token_service import TokenService
from utils.hashing import verify_password, get_password_hash
from utils.logger import get_logger
from utils.reset_tokens import generate_reset_token, get_reset_expiry_time

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.lower().strip()


class AuthService:
    """
    Signup, signin, password reset and permission management.

    Methods that log somebody in return ``(user, token)``; putting the token
    in the cookie is the router's job.
    """

    def __init__(self, settings: Settings, tokens: TokenService, mailer: EmailService):
        self.settings = settings
        self.tokens = tokens
        self.mailer = mailer

    def signup(self, request: SignupRequest, db: Session) -> tuple[User, str]:
        email = normalize_email(request.email)

        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.warning(
                "Signup attempt with existing email",
                extra={"email": email}
            )
            raise DuplicateEmail("Email already registered", email=email)

        user = User(
            email=email,
            first_name=request.first_name,
            last_name=request.last_name,
            phone_number=request.phone_number,
            hashed_password=get_password_hash(request.password),
            permissions=[Permission.USER.value],
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info("User signed up", extra={"user_id": user.id, "email": email})

        return user, self.tokens.create_token(user.id)

    def signin(self, email: str, password: str, db: Session) -> tuple[User, str]:
        email = normalize_email(email)
        user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.warning("Signin failed - user not found", extra={"email": email})
            raise NotFound(f"No such user found for email {email}", email=email)

        if not verify_password(password, user.hashed_password):
            logger.warning(
                "Signin failed - invalid password",
                extra={"user_id": user.id, "email": email}
            )
            raise InvalidCredential("Invalid password!", email=email)

        logger.debug("User signed in", extra={"user_id": user.id})

        return user, self.tokens.create_token(user.id)

    def request_reset(self, email: str, db: Session, bg: BackgroundTasks) -> dict:
        """
        Stores a fresh single-use reset token on the user and emails a link.

        Whether a failed email reaches the caller depends on
        RESET_EMAIL_FAILURE_POLICY: "silent" sends in the background and
        only logs failures, "raise" sends inline and raises
        MailDeliveryFailed.
        """
        email = normalize_email(email)
        user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.info("Password reset requested for unknown email", extra={"email": email})
            raise NotFound(f"No such user found for email {email}", email=email)

        user.reset_token = generate_reset_token()
        user.reset_token_expiry = get_reset_expiry_time(self.settings.RESET_TOKEN_EXPIRE_MINUTES)
        db.commit()

        reset_url = f"{self.settings.FRONTEND_URL.rstrip('/')}/reset?resetToken={user.reset_token}"
        subject = "Your Password Reset Token"
        body = reset_email_body(reset_url, self.settings.RESET_TOKEN_EXPIRE_MINUTES)

        if self.settings.RESET_EMAIL_FAILURE_POLICY == "raise":
            try:
                self.mailer.send(to_email=user.email, subject=subject, body=body)
            except OSError as e:
                raise MailDeliveryFailed("Could not send the reset email", user_id=user.id) from e
        else:
            bg.add_task(self.mailer.send, to_email=user.email, subject=subject, body=body)

        logger.info("Password reset requested", extra={"user_id": user.id})

        return {"message": "Thanks!"}

    def reset_password(self, password: str, confirm_password: str, reset_token: str,
                       db: Session) -> tuple[User, str]:
        if password != confirm_password:
            raise Mismatch("Passwords don't match!")

        now = datetime.now(timezone.utc)
        user = db.query(User).filter(
            User.reset_token == reset_token,
            User.reset_token_expiry > now
        ).first()

        if not user:
            logger.warning("Password reset failed - invalid or expired token")
            raise InvalidOrExpiredToken()

        # Conditional on the token still being there, so two concurrent
        # resets with the same token cannot both succeed
        result = db.execute(
            update(User)
            .where(User.id == user.id, User.reset_token == reset_token)
            .values(
                hashed_password=get_password_hash(password),
                reset_token=None,
                reset_token_expiry=None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning("Password reset lost a race", extra={"user_id": user.id})
            raise InvalidOrExpiredToken()

        db.commit()
        db.refresh(user)

        logger.info("Password reset successfully", extra={"user_id": user.id})

        return user, self.tokens.create_token(user.id)

    def update_permissions(self, identity: Identity, target_user_id: int,
                           permissions: list[Permission], db: Session) -> User:
        current_user = identity.require_user()
        require_permission(current_user, PERMISSION_UPDATE_ROLES)

        target = db.query(User).filter(User.id == target_user_id).one_or_none()
        if not target:
            raise NotFound("User not found", user_id=target_user_id)

        # Replaced wholesale, not merged
        target.permissions = [Permission(p).value for p in permissions]
        db.commit()
        db.refresh(target)

        logger.info(
            "Permissions updated",
            extra={"user_id": target.id, "by_user_id": current_user.id, "permissions": target.permissions}
        )

        return target

    def list_users(self, identity: Identity, db: Session) -> list[User]:
        current_user = identity.require_user()
        require_permission(current_user, USER_LIST_ROLES)
        return db.query(User).order_by(User.id).all()
