import os

os.environ["ENV"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")
os.environ.setdefault("MAIL_USERNAME", "test")
os.environ.setdefault("MAIL_PASSWORD", "test")
os.environ.setdefault("MAIL_FROM", "no-reply@example.com")
os.environ.setdefault("MAIL_SERVER", "localhost")
os.environ.setdefault("MAIL_PORT", "587")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.config import settings
from core.database import Base
from models.items import Item
from models.users import User, Permission
from services.identity_service import Identity
from services.payment_gateway import ChargeReceipt
from services.token_service import TokenService
from utils.deps import get_db, get_payment_gateway
from utils.hashing import get_password_hash

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

TEST_PASSWORD = "TestPassword123!"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


class FakeGateway:
    """
    In-memory payment gateway.

    Set ``error`` to make the next charges raise it, ``settle_amount`` to
    settle for a different amount than requested and ``on_charge`` to run
    something while the charge is in flight. ``captured`` maps a source
    to its receipt, which is what ``fetch_charge`` reports.
    """

    def __init__(self):
        self.charges = []
        self.captured = {}
        self.error = None
        self.settle_amount = None
        self.on_charge = None

    def charge(self, amount, currency, source):
        self.charges.append({"amount": amount, "currency": currency, "source": source})
        if self.on_charge is not None:
            self.on_charge()
        if self.error is not None:
            raise self.error

        receipt = ChargeReceipt(
            id=f"pay_test_{len(self.charges)}",
            settled_amount=amount if self.settle_amount is None else self.settle_amount,
        )
        self.captured[source] = receipt
        return receipt

    def fetch_charge(self, source):
        return self.captured.get(source)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_session(session: Session) -> Generator[Session, None, None]:
    """
    A second, independent session on the same database, standing in for a
    concurrent request.
    """
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def client(session: Session, gateway: FakeGateway):
    """
    Async HTTP client against the app, wired to the test database and the
    fake payment gateway.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: Session):
    def _make_user(email: str, permissions=(Permission.USER,), password: str = TEST_PASSWORD) -> User:
        user = User(
            email=email,
            first_name="Test",
            last_name="User",
            hashed_password=get_password_hash(password),
            permissions=[Permission(p).value for p in permissions],
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def customer(make_user) -> User:
    return make_user("customer@example.com")


@pytest.fixture
def other_customer(make_user) -> User:
    return make_user("other@example.com")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin@example.com", permissions=(Permission.USER, Permission.ADMIN))


@pytest.fixture
def make_item(session: Session):
    def _make_item(owner: User, price: int, title: str = "Item") -> Item:
        item = Item(
            title=title,
            description=f"A fine {title.lower()}",
            image="image.jpg",
            large_image="large-image.jpg",
            price=price,
            user_id=owner.id,
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
    return _make_item


@pytest.fixture
def auth_headers():
    tokens = TokenService(settings)

    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {tokens.create_token(user.id)}"}
    return _auth_headers


@pytest.fixture
def identity_for():
    def _identity_for(user: User) -> Identity:
        return Identity(user_id=user.id, user=user)
    return _identity_for
