from shop_service.security import decode_access_token, create_access_token

REGISTER = {"name": "Carol", "email": "carol@shopmail.com", "password": "carol-pass"}


async def test_register_creates_user_and_sends_welcome(client, sent_emails):
    response = await client.post("/auth/register", json=REGISTER)

    assert response.status_code == 201, response.text
    user = response.json()["data"]
    assert user["email"] == REGISTER["email"]
    assert user["role"] == "user"
    assert "password" not in user

    assert sent_emails[-1]["subject"] == "Welcome to Our Platform"
    assert sent_emails[-1]["email"] == REGISTER["email"]


async def test_register_duplicate_email_fails(client):
    assert (await client.post("/auth/register", json=REGISTER)).status_code == 201

    duplicate = dict(REGISTER, email="Carol@ShopMail.com", name="Another Carol")
    response = await client.post("/auth/register", json=duplicate)

    assert response.status_code == 409
    assert response.json()["errorCode"] == 26
    assert response.json()["errorDescription"] == "A user with this email already exists"


async def test_register_cannot_grant_admin(client):
    response = await client.post("/auth/register", json=dict(REGISTER, role="admin"))

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "user"


async def test_login_returns_token_for_user(client, sent_emails):
    user = (await client.post("/auth/register", json=REGISTER)).json()["data"]

    response = await client.post(
        "/auth/login", json={"email": REGISTER["email"], "password": REGISTER["password"]}
    )

    assert response.status_code == 200, response.text
    token = response.json()["data"]["accessToken"]
    assert response.json()["data"]["tokenType"] == "bearer"

    claims = decode_access_token(token)
    assert claims["sub"] == user["id"]
    assert claims["email"] == REGISTER["email"]
    assert claims["role"] == "user"

    assert sent_emails[-1]["subject"] == "Login Notification"


async def test_login_with_wrong_password_fails(client):
    await client.post("/auth/register", json=REGISTER)

    response = await client.post(
        "/auth/login", json={"email": REGISTER["email"], "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["errorCode"] == 36


async def test_login_with_unknown_email_fails(client):
    response = await client.post(
        "/auth/login", json={"email": "nobody@shopmail.com", "password": "whatever"}
    )

    assert response.status_code == 401
    assert response.json()["errorCode"] == 36


async def test_token_can_be_used_on_protected_route(client):
    await client.post("/auth/register", json=REGISTER)
    token = (await client.post(
        "/auth/login", json={"email": REGISTER["email"], "password": REGISTER["password"]}
    )).json()["data"]["accessToken"]

    response = await client.get("/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["list"] == []


async def test_expired_token_is_rejected(client, customer):
    token = create_access_token(customer.id, customer.email, customer.role.value, expires_minutes=-1)

    response = await client.get("/orders", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["errorCode"] == 3


def test_tampered_token_is_not_decoded():
    token = create_access_token("user-id", "x@shopmail.com", "user")

    assert decode_access_token(token + "x") is None
