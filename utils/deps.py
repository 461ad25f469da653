from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from core.config import Settings, settings as app_settings
from core.database import SessionLocal
from services.auth_service import AuthService
from services.cart_service import CartService
from services.checkout_service import CheckoutService
from services.email_service import EmailService
from services.identity_service import Identity, resolve_identity
from services.item_service import ItemService
from services.payment_gateway import PaymentGateway, RazorpayGateway
from services.token_service import TokenService
from utils.cookies import TOKEN_COOKIE_NAME


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


def get_settings() -> Settings:
    return app_settings

settings_dependency = Annotated[Settings, Depends(get_settings)]


def get_token_service(settings: settings_dependency) -> TokenService:
    return TokenService(settings)


def get_email_service(settings: settings_dependency) -> EmailService:
    return EmailService(settings)


def get_payment_gateway(settings: settings_dependency) -> PaymentGateway:
    return RazorpayGateway(settings)


def get_auth_service(settings: settings_dependency,
                     tokens: Annotated[TokenService, Depends(get_token_service)],
                     mailer: Annotated[EmailService, Depends(get_email_service)]) -> AuthService:
    return AuthService(settings, tokens, mailer)


def get_checkout_service(settings: settings_dependency,
                         gateway: Annotated[PaymentGateway, Depends(get_payment_gateway)]) -> CheckoutService:
    return CheckoutService(settings, gateway)


auth_service_dependency = Annotated[AuthService, Depends(get_auth_service)]
cart_service_dependency = Annotated[CartService, Depends(CartService)]
item_service_dependency = Annotated[ItemService, Depends(ItemService)]
checkout_service_dependency = Annotated[CheckoutService, Depends(get_checkout_service)]


def read_token(request: Request) -> str | None:
    """
    Session token from an explicit Authorization: Bearer header, else from
    the ``token`` cookie the browser carries.
    """
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials

    return request.cookies.get(TOKEN_COOKIE_NAME)


def get_identity(request: Request, db: db_dependency,
                 tokens: Annotated[TokenService, Depends(get_token_service)]) -> Identity:
    identity = resolve_identity(read_token(request), db, tokens)
    request.state.user_id = identity.user_id
    return identity

identity_dependency = Annotated[Identity, Depends(get_identity)]
