from decimal import Decimal

from conftest import JAR_ID, LAVENDER_ID, PILLAR_ID, SANDALWOOD_ID, VANILLA_ID, WHITE_ID, IVORY_ID, set_product


def add(client, headers, **payload):
    return client.post("/api/cart", json=payload, headers=headers)


def test_cart_requires_login(client):
    assert client.get("/api/cart").status_code == 401


def test_empty_cart_has_no_shipping(client, customer_headers):
    body = client.get("/api/cart", headers=customer_headers).json()
    assert body["items"] == []
    assert Decimal(body["subtotal"]) == 0
    assert Decimal(body["shipping"]) == 0


def test_add_plain_product(client, customer_headers, plain_product):
    response = add(client, customer_headers, product_id=plain_product.id, quantity=2)
    assert response.status_code == 201
    line = response.json()
    assert line["quantity"] == 2
    assert Decimal(line["line_total"]) == Decimal("9.98")

    cart = client.get("/api/cart", headers=customer_headers).json()
    assert cart["item_count"] == 2
    assert Decimal(cart["subtotal"]) == Decimal("9.98")
    assert Decimal(cart["shipping"]) == Decimal("5.00")
    assert Decimal(cart["total"]) == Decimal("14.98")


def test_same_variant_merges_into_one_line(client, customer_headers):
    first = add(client, customer_headers, product_id=JAR_ID, quantity=1, scent_id=LAVENDER_ID).json()
    second = add(client, customer_headers, product_id=JAR_ID, quantity=2, scent_id=LAVENDER_ID).json()
    assert first["id"] == second["id"]
    assert second["quantity"] == 3

    # A different scent is its own line
    other = add(client, customer_headers, product_id=JAR_ID, quantity=1, scent_id=VANILLA_ID).json()
    assert other["id"] != first["id"]
    assert len(client.get("/api/cart", headers=customer_headers).json()["items"]) == 2


def test_missing_scent_is_a_conflict_and_cart_unchanged(client, customer_headers):
    response = add(client, customer_headers, product_id=JAR_ID, quantity=1)
    assert response.status_code == 409
    assert "scent" in response.json()["detail"]
    assert client.get("/api/cart", headers=customer_headers).json()["items"] == []


def test_missing_color_is_a_conflict(client, customer_headers):
    assert add(client, customer_headers, product_id=PILLAR_ID, quantity=1).status_code == 409
    ok = add(client, customer_headers, product_id=PILLAR_ID, quantity=1, color_id=WHITE_ID)
    assert ok.status_code == 201
    assert ok.json()["color_name"] == "White"


def test_color_not_needed_when_color_options_are_off(client, customer_headers, db_session):
    set_product(db_session, PILLAR_ID, has_color_options=False)
    assert add(client, customer_headers, product_id=PILLAR_ID, quantity=1).status_code == 201


def test_variant_not_offered_is_rejected(client, customer_headers):
    assert add(client, customer_headers, product_id=JAR_ID, quantity=1, scent_id=SANDALWOOD_ID).status_code == 400
    assert add(client, customer_headers, product_id=PILLAR_ID, quantity=1, color_id=IVORY_ID).status_code == 400


def test_quantity_out_of_range(client, customer_headers, plain_product):
    assert add(client, customer_headers, product_id=plain_product.id, quantity=0).status_code == 400
    assert add(client, customer_headers, product_id=plain_product.id, quantity=4).status_code == 400


def test_merge_beyond_stock_is_a_conflict(client, customer_headers, plain_product):
    assert add(client, customer_headers, product_id=plain_product.id, quantity=2).status_code == 201
    response = add(client, customer_headers, product_id=plain_product.id, quantity=2)
    assert response.status_code == 409
    cart = client.get("/api/cart", headers=customer_headers).json()
    assert cart["items"][0]["quantity"] == 2


def test_unknown_product(client, customer_headers):
    assert add(client, customer_headers, product_id=999, quantity=1).status_code == 404


def test_update_quantity(client, customer_headers, plain_product):
    line = add(client, customer_headers, product_id=plain_product.id, quantity=1).json()
    response = client.put(f"/api/cart/{line['id']}", json={"quantity": 3}, headers=customer_headers)
    assert response.status_code == 200
    assert response.json()["quantity"] == 3

    assert client.put(f"/api/cart/{line['id']}", json={"quantity": 4}, headers=customer_headers).status_code == 400
    assert client.put(f"/api/cart/{line['id']}", json={"quantity": 0}, headers=customer_headers).status_code == 400
    assert client.put("/api/cart/999", json={"quantity": 1}, headers=customer_headers).status_code == 404


def test_cannot_touch_other_users_lines(client, customer_headers, other_headers, plain_product):
    line = add(client, customer_headers, product_id=plain_product.id, quantity=1).json()
    assert client.put(f"/api/cart/{line['id']}", json={"quantity": 2}, headers=other_headers).status_code == 404
    client.delete(f"/api/cart/{line['id']}", headers=other_headers)
    assert len(client.get("/api/cart", headers=customer_headers).json()["items"]) == 1


def test_remove_is_idempotent(client, customer_headers, plain_product):
    line = add(client, customer_headers, product_id=plain_product.id, quantity=1).json()
    assert client.delete(f"/api/cart/{line['id']}", headers=customer_headers).status_code == 204
    assert client.delete(f"/api/cart/{line['id']}", headers=customer_headers).status_code == 204
    assert client.get("/api/cart", headers=customer_headers).json()["items"] == []


def test_clear_cart(client, customer_headers, plain_product):
    add(client, customer_headers, product_id=plain_product.id, quantity=1)
    add(client, customer_headers, product_id=JAR_ID, quantity=1, scent_id=LAVENDER_ID)
    assert client.delete("/api/cart", headers=customer_headers).status_code == 204
    assert client.get("/api/cart", headers=customer_headers).json()["item_count"] == 0


def test_free_shipping_progress_in_cart(client, customer_headers):
    add(client, customer_headers, product_id=JAR_ID, quantity=3, scent_id=LAVENDER_ID)
    cart = client.get("/api/cart", headers=customer_headers).json()
    assert Decimal(cart["subtotal"]) == Decimal("44.70")
    assert Decimal(cart["free_shipping_remaining"]) == Decimal("5.30")
    assert cart["free_shipping_progress"] == 89.4

    add(client, customer_headers, product_id=JAR_ID, quantity=1, scent_id=LAVENDER_ID)
    cart = client.get("/api/cart", headers=customer_headers).json()
    assert Decimal(cart["shipping"]) == 0
