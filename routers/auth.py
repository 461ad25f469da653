from fastapi import APIRouter, Request, Response, BackgroundTasks
from starlette import status
from schemas.auth_schemas import (SignupRequest, SigninRequest, RequestResetRequest,
                                  ResetPasswordRequest, UserResponse, MessageResponse)
from utils.deps import db_dependency, auth_service_dependency, identity_dependency, settings_dependency
from utils.cookies import set_token_cookie, clear_token_cookie
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def signup(request: Request, response: Response, body: SignupRequest, db: db_dependency,
           auth: auth_service_dependency, settings: settings_dependency):
    user, token = auth.signup(body, db)

    set_token_cookie(response, token, settings.TOKEN_EXPIRE_DAYS, settings.COOKIE_SECURE)

    return user


@router.post("/signin", response_model=UserResponse)
@limiter.limit("5/minute")
def signin(request: Request, response: Response, body: SigninRequest, db: db_dependency,
           auth: auth_service_dependency, settings: settings_dependency):
    user, token = auth.signin(body.email, body.password, db)

    set_token_cookie(response, token, settings.TOKEN_EXPIRE_DAYS, settings.COOKIE_SECURE)

    logger.info("User signed in successfully", extra={"user_id": user.id})

    return user


@router.post("/signout", response_model=MessageResponse)
async def signout(response: Response, settings: settings_dependency):
    clear_token_cookie(response, settings.COOKIE_SECURE)
    return {"message": "Goodbye!"}


@router.post("/request-reset", response_model=MessageResponse)
@limiter.limit("3/minute")
def request_reset(request: Request, body: RequestResetRequest, db: db_dependency,
                  auth: auth_service_dependency, bg: BackgroundTasks):
    return auth.request_reset(body.email, db, bg)


@router.post("/reset-password", response_model=UserResponse)
@limiter.limit("5/minute")
def reset_password(request: Request, response: Response, body: ResetPasswordRequest, db: db_dependency,
                   auth: auth_service_dependency, settings: settings_dependency):
    user, token = auth.reset_password(body.password, body.confirm_password, body.reset_token, db)

    set_token_cookie(response, token, settings.TOKEN_EXPIRE_DAYS, settings.COOKIE_SECURE)

    return user


@router.get("/me", response_model=UserResponse | None)
def me(identity: identity_dependency):
    """The signed-in user, or null for anonymous callers."""
    return identity.user
