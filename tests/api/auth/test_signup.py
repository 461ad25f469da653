from models.users import User


def signup_body(**fields):
    body = {
        "email": "Jane.Doe@Example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "password": "SecurePass123!",
    }
    body.update(fields)
    return body


async def test_signup_success(client, session):
    """Test signup creates a USER and starts a session cookie."""
    response = await client.post("/auth/signup", json=signup_body())

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "jane.doe@example.com"
    assert data["permissions"] == ["USER"]
    assert "password" not in data
    assert "hashed_password" not in data

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("token=")
    assert "httponly" in cookie
    assert "samesite=lax" in cookie
    assert f"max-age={365 * 24 * 60 * 60}" in cookie

    user = session.query(User).filter(User.email == "jane.doe@example.com").first()
    assert user is not None


async def test_signup_with_phone_number(client):
    response = await client.post("/auth/signup", json=signup_body(phone_number="+201111111111"))

    assert response.status_code == 201
    assert response.json()["phone_number"] == "+201111111111"


async def test_signup_duplicate_email(client, customer):
    response = await client.post("/auth/signup", json=signup_body(email="CUSTOMER@example.com"))

    assert response.status_code == 400
    assert response.json()["kind"] == "DUPLICATE_EMAIL"


async def test_signup_weak_password(client):
    response = await client.post("/auth/signup", json=signup_body(password="short"))

    assert response.status_code == 422


async def test_signup_invalid_email(client):
    response = await client.post("/auth/signup", json=signup_body(email="not-an-email"))

    assert response.status_code == 422


async def test_signup_invalid_phone_number(client):
    response = await client.post("/auth/signup", json=signup_body(phone_number="12345"))

    assert response.status_code == 422
