from decimal import Decimal

from sqlalchemy import select, func

from shop_service.models import Order, OrderItem
from shop_service.services import order_service as order_service_module


async def add_to_cart(client, headers, product_id, quantity):
    response = await client.post(
        "/carts/cart",
        json={"productId": product_id, "quantity": quantity},
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def count_orders(session_factory):
    async with session_factory() as session:
        orders = (await session.execute(select(func.count(Order.id)))).scalar()
        items = (await session.execute(select(func.count(OrderItem.id)))).scalar()
        return orders, items


async def test_checkout_moves_cart_into_order(client, customer, customer_headers, make_product, product_stock):
    keyboard = await make_product("Keyboard", "10.00", stock=10)
    mouse = await make_product("Mouse", "2.50", stock=5)

    await add_to_cart(client, customer_headers, keyboard.id, 3)
    cart = await add_to_cart(client, customer_headers, mouse.id, 2)
    stock_before = {keyboard.id: await product_stock(keyboard.id), mouse.id: await product_stock(mouse.id)}

    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["errorCode"] == 0
    order = body["data"]
    assert order["status"] == "created"
    assert order["userId"] == customer.id
    assert Decimal(str(order["totalAmount"])) == Decimal("35.00")

    ordered = {item["productId"]: item for item in order["items"]}
    for cart_item in cart["items"]:
        line = ordered[cart_item["productId"]]
        assert line["quantity"] == cart_item["quantity"]
        assert Decimal(str(line["price"])) == Decimal(str(cart_item["unitPrice"]))

    # остаток списан при добавлении в корзину, checkout его не трогает
    assert await product_stock(keyboard.id) == stock_before[keyboard.id] == 7
    assert await product_stock(mouse.id) == stock_before[mouse.id] == 3

    # корзина очищена, но осталась той же
    response = await client.get("/carts/cart", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == cart["id"]
    assert response.json()["data"]["items"] == []


async def test_checkout_sends_order_confirmation(client, customer, customer_headers, make_product, sent_emails):
    product = await make_product("Monitor", "199.99", stock=2)
    await add_to_cart(client, customer_headers, product.id, 1)

    response = await client.post("/orders/checkout", headers=customer_headers)
    assert response.status_code == 201

    confirmation = [email for email in sent_emails if email["subject"] == "Order Confirmation"]
    assert len(confirmation) == 1
    assert confirmation[0]["topic"] == "send_email"
    assert confirmation[0]["email"] == customer.email
    assert "Product: Monitor" in confirmation[0]["message"]
    assert "Total Price: $199.99" in confirmation[0]["message"]
    assert "Thank you for your purchase!" in confirmation[0]["message"]


async def test_checkout_of_last_units_in_stock(client, customer_headers, make_product, product_stock):
    product = await make_product("Lamp Shade", "30.00", stock=2)
    await add_to_cart(client, customer_headers, product.id, 2)
    assert await product_stock(product.id) == 0

    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 201, response.text
    assert response.json()["data"]["items"][0]["quantity"] == 2
    assert await product_stock(product.id) == 0


async def test_checkout_stock_failure_rolls_back_everything(
        client, customer_headers, make_product, product_stock, session_factory, monkeypatch
):
    mouse = await make_product("Mouse", "2.50", stock=5)
    keyboard = await make_product("Keyboard", "10.00", stock=4)

    await add_to_cart(client, customer_headers, mouse.id, 1)
    await add_to_cart(client, customer_headers, keyboard.id, 3)
    assert await product_stock(mouse.id) == 4
    assert await product_stock(keyboard.id) == 1

    lock_product = order_service_module.lock_product

    async def oversold_lock(db, product_id):
        product = await lock_product(db, product_id)
        # резерв клавиатуры ушел в минус в обход корзины
        if product_id == keyboard.id:
            product.stock = -2
        return product

    monkeypatch.setattr(order_service_module, "lock_product", oversold_lock)

    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["errorCode"] == 10
    assert body["errorLevel"] == "ERROR"
    assert body["data"]["productId"] == keyboard.id
    assert body["data"]["requested"] == 3
    assert body["data"]["available"] == -2

    # заказ мыши уже был сброшен в сессию и откатился вместе со всем остальным
    assert await count_orders(session_factory) == (0, 0)
    assert await product_stock(mouse.id) == 4
    assert await product_stock(keyboard.id) == 1

    cart = (await client.get("/carts/cart", headers=customer_headers)).json()["data"]
    assert len(cart["items"]) == 2


async def test_checkout_without_cart_fails(client, customer_headers, session_factory, sent_emails):
    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 404
    assert response.json()["errorCode"] == 38
    assert response.json()["errorDescription"] == "Cart not found"
    assert await count_orders(session_factory) == (0, 0)
    assert sent_emails == []


async def test_checkout_with_empty_cart_fails(
        client, customer_headers, make_product, product_stock, session_factory
):
    product = await make_product("Cable", "3.00", stock=2)
    cart = await add_to_cart(client, customer_headers, product.id, 1)
    response = await client.delete(f"/carts/cart/{cart['items'][0]['id']}", headers=customer_headers)
    assert response.status_code == 200

    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 400
    assert response.json()["errorCode"] == 16
    assert await count_orders(session_factory) == (0, 0)
    assert await product_stock(product.id) == 2


async def test_checkout_unexpected_error_is_wrapped_and_rolled_back(
        client, customer_headers, make_product, product_stock, session_factory, monkeypatch
):
    product = await make_product("Headset", "40.00", stock=3)
    await add_to_cart(client, customer_headers, product.id, 1)

    async def broken_lock(db, product_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(order_service_module, "lock_product", broken_lock)

    response = await client.post("/orders/checkout", headers=customer_headers)

    assert response.status_code == 422
    assert response.json()["errorCode"] == 28
    assert await count_orders(session_factory) == (0, 0)
    assert await product_stock(product.id) == 2


async def test_orders_are_visible_only_to_owner_and_admin(
        client, customer_headers, other_headers, admin_headers, make_product
):
    product = await make_product("Lamp", "15.00", stock=3)
    await add_to_cart(client, customer_headers, product.id, 1)
    order = (await client.post("/orders/checkout", headers=customer_headers)).json()["data"]

    response = await client.get(f"/orders/{order['id']}", headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == order["id"]

    response = await client.get(f"/orders/{order['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["errorCode"] == 29

    response = await client.get(f"/orders/{order['id']}", headers=admin_headers)
    assert response.status_code == 200

    listing = (await client.get("/orders", headers=customer_headers)).json()
    assert listing["totalElements"] == 1
    assert listing["list"][0]["id"] == order["id"]

    listing = (await client.get("/orders", headers=other_headers)).json()
    assert listing["totalElements"] == 0
    assert listing["hasContent"] is False


async def test_admin_updates_order_status_and_notifies(
        client, customer, customer_headers, admin_headers, make_product, sent_emails
):
    product = await make_product("Desk", "120.00", stock=1)
    await add_to_cart(client, customer_headers, product.id, 1)
    order = (await client.post("/orders/checkout", headers=customer_headers)).json()["data"]

    response = await client.patch(
        f"/orders/{order['id']}", json={"status": "delivered"}, headers=customer_headers
    )
    assert response.status_code == 403
    assert response.json()["errorCode"] == 39

    response = await client.patch(
        f"/orders/{order['id']}", json={"status": "delivered"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "delivered"
    assert len(response.json()["data"]["items"]) == 1

    subjects = [email["subject"] for email in sent_emails if email["email"] == customer.email]
    assert "Order Status Update" in subjects
    assert "Order Delivered" in subjects
