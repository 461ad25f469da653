ITEM = {
    "title": "Shirt",
    "description": "A fine shirt",
    "image": "shirt.jpg",
    "large_image": "shirt-large.jpg",
    "price": 500,
}


async def test_create_item(client, customer, auth_headers):
    response = await client.post("/items", headers=auth_headers(customer), json=ITEM)

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Shirt"
    assert data["price"] == 500
    assert data["user_id"] == customer.id


async def test_create_item_requires_login(client):
    response = await client.post("/items", json=ITEM)

    assert response.status_code == 401


async def test_create_item_negative_price(client, customer, auth_headers):
    response = await client.post("/items", headers=auth_headers(customer), json={**ITEM, "price": -1})

    assert response.status_code == 422


async def test_list_and_get_items(client, admin, make_item):
    shirt = make_item(admin, price=500, title="Shirt")
    make_item(admin, price=300, title="Hat")

    response = await client.get("/items")
    assert response.status_code == 200
    assert {i["title"] for i in response.json()} == {"Shirt", "Hat"}

    response = await client.get(f"/items/{shirt.id}")
    assert response.status_code == 200
    assert response.json()["title"] == "Shirt"

    response = await client.get("/items/9999")
    assert response.status_code == 404


async def test_owner_deletes_item(client, customer, make_item, auth_headers):
    item = make_item(customer, price=500)

    response = await client.delete(f"/items/{item.id}", headers=auth_headers(customer))

    assert response.status_code == 200
    assert response.json()["id"] == item.id

    response = await client.get(f"/items/{item.id}")
    assert response.status_code == 404


async def test_non_owner_cannot_delete_item(client, customer, other_customer, make_item, auth_headers):
    item = make_item(customer, price=500)

    response = await client.delete(f"/items/{item.id}", headers=auth_headers(other_customer))

    assert response.status_code == 403
    assert response.json()["kind"] == "FORBIDDEN"

    response = await client.get(f"/items/{item.id}")
    assert response.status_code == 200


async def test_admin_deletes_any_item(client, customer, admin, make_item, auth_headers):
    item = make_item(customer, price=500)

    response = await client.delete(f"/items/{item.id}", headers=auth_headers(admin))

    assert response.status_code == 200


async def test_item_delete_permission_is_enough(client, customer, make_user, make_item, auth_headers):
    moderator = make_user("moderator@example.com", permissions=("USER", "ITEMDELETE"))
    item = make_item(customer, price=500)

    response = await client.delete(f"/items/{item.id}", headers=auth_headers(moderator))

    assert response.status_code == 200


async def test_deleting_item_drops_cart_lines(client, customer, other_customer, make_item, auth_headers):
    item = make_item(customer, price=500)
    await client.post("/cart/items", headers=auth_headers(other_customer), json={"item_id": item.id})

    response = await client.delete(f"/items/{item.id}", headers=auth_headers(customer))
    assert response.status_code == 200

    response = await client.get("/cart", headers=auth_headers(other_customer))
    assert response.json() == []


async def test_owner_updates_item(client, customer, make_item, auth_headers):
    item = make_item(customer, price=500, title="Shirt")

    response = await client.patch(f"/items/{item.id}", headers=auth_headers(customer),
                                  json={"title": "Blue Shirt", "price": 650})

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Blue Shirt"
    assert data["price"] == 650
    assert data["description"] == "A fine shirt"


async def test_non_owner_cannot_update_item(client, customer, other_customer, make_item, auth_headers):
    item = make_item(customer, price=500)

    response = await client.patch(f"/items/{item.id}", headers=auth_headers(other_customer),
                                  json={"price": 1})

    assert response.status_code == 403
    assert response.json()["context"]["required"] == ["ADMIN", "ITEMUPDATE"]

    response = await client.get(f"/items/{item.id}")
    assert response.json()["price"] == 500


async def test_item_update_permission_is_enough(client, customer, make_user, make_item, auth_headers):
    editor = make_user("editor@example.com", permissions=("USER", "ITEMUPDATE"))
    item = make_item(customer, price=500)

    response = await client.patch(f"/items/{item.id}", headers=auth_headers(editor), json={"price": 450})

    assert response.status_code == 200
    assert response.json()["price"] == 450


async def test_update_unknown_item(client, customer, auth_headers):
    response = await client.patch("/items/9999", headers=auth_headers(customer), json={"price": 1})

    assert response.status_code == 404


async def test_update_item_negative_price(client, customer, make_item, auth_headers):
    item = make_item(customer, price=500)

    response = await client.patch(f"/items/{item.id}", headers=auth_headers(customer), json={"price": -5})

    assert response.status_code == 422


async def test_price_change_leaves_order_history(client, customer, admin, make_item, auth_headers):
    item = make_item(admin, price=500, title="Shirt")
    await client.post("/cart/items", headers=auth_headers(customer), json={"item_id": item.id})
    response = await client.post("/orders", headers=auth_headers(customer), json={"token": "pay_src_1"})
    order_id = response.json()["id"]

    response = await client.patch(f"/items/{item.id}", headers=auth_headers(admin), json={"price": 900})
    assert response.status_code == 200

    response = await client.get(f"/orders/{order_id}", headers=auth_headers(customer))
    assert response.json()["items"][0]["price"] == 500
