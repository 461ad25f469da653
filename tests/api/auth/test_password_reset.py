from datetime import datetime, timedelta, timezone


async def request_token(client, session, user) -> str:
    response = await client.post("/auth/request-reset", json={"email": user.email})
    assert response.status_code == 200
    session.refresh(user)
    return user.reset_token


async def test_request_reset(client, session, customer):
    response = await client.post("/auth/request-reset", json={"email": customer.email})

    assert response.status_code == 200
    assert response.json() == {"message": "Thanks!"}

    session.refresh(customer)
    assert customer.reset_token is not None
    assert customer.reset_token_expiry is not None


async def test_request_reset_unknown_email(client):
    response = await client.post("/auth/request-reset", json={"email": "nobody@example.com"})

    assert response.status_code == 404


async def test_reset_password_flow(client, session, customer):
    """Test reset signs the user in and the new password works."""
    token = await request_token(client, session, customer)

    response = await client.post("/auth/reset-password", json={
        "reset_token": token,
        "password": "BrandNewPass123!",
        "confirm_password": "BrandNewPass123!"
    })

    assert response.status_code == 200
    assert response.json()["id"] == customer.id
    assert response.headers["set-cookie"].startswith("token=")

    response = await client.post("/auth/signin", json={
        "email": customer.email,
        "password": "BrandNewPass123!"
    })
    assert response.status_code == 200

    response = await client.post("/auth/signin", json={
        "email": customer.email,
        "password": "TestPassword123!"
    })
    assert response.status_code == 401


async def test_reset_token_single_use(client, session, customer):
    token = await request_token(client, session, customer)
    body = {"reset_token": token, "password": "BrandNewPass123!", "confirm_password": "BrandNewPass123!"}

    response = await client.post("/auth/reset-password", json=body)
    assert response.status_code == 200

    response = await client.post("/auth/reset-password", json=body)
    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_OR_EXPIRED_TOKEN"


async def test_reset_password_mismatch(client, session, customer):
    token = await request_token(client, session, customer)

    response = await client.post("/auth/reset-password", json={
        "reset_token": token,
        "password": "BrandNewPass123!",
        "confirm_password": "SomethingElse123!"
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "Passwords don't match!"
    assert response.json()["kind"] == "MISMATCH"


async def test_reset_password_expired_token(client, session, customer):
    token = await request_token(client, session, customer)
    customer.reset_token_expiry = datetime.now(timezone.utc) - timedelta(seconds=1)
    session.commit()

    response = await client.post("/auth/reset-password", json={
        "reset_token": token,
        "password": "BrandNewPass123!",
        "confirm_password": "BrandNewPass123!"
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "This token is either invalid or expired!"


async def test_reset_password_unknown_token(client, customer):
    response = await client.post("/auth/reset-password", json={
        "reset_token": "0" * 40,
        "password": "BrandNewPass123!",
        "confirm_password": "BrandNewPass123!"
    })

    assert response.status_code == 400


async def test_new_reset_request_replaces_token(client, session, customer):
    first = await request_token(client, session, customer)
    second = await request_token(client, session, customer)

    assert first != second

    response = await client.post("/auth/reset-password", json={
        "reset_token": first,
        "password": "BrandNewPass123!",
        "confirm_password": "BrandNewPass123!"
    })
    assert response.status_code == 400
