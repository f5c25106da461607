from decimal import Decimal

from conftest import JAR_ID, LAVENDER_ID, PILLAR_ID, SANDALWOOD_ID, WHITE_ID, IVORY_ID

NEW_PRODUCT = {
    "name": "Beeswax taper",
    "description": "Pair of natural beeswax tapers",
    "price": "12.00",
    "stock": 10,
    "category_id": 2,
    "burn_time": "8h",
    "featured": False,
    "has_color_options": True,
}


def test_list_and_filter_products(client, plain_product):
    assert len(client.get("/api/products").json()) == 3
    assert [p["id"] for p in client.get("/api/products", params={"category_id": 1}).json()] == [JAR_ID]
    cheap = client.get("/api/products", params={"max_price": "10"}).json()
    assert {p["name"] for p in cheap} == {"Pillar candle", "Tea light set"}
    assert [p["id"] for p in client.get("/api/products", params={"min_price": "10"}).json()] == [JAR_ID]
    assert [p["id"] for p in client.get("/api/products", params={"q": "pillar"}).json()] == [PILLAR_ID]
    # the description is searched too
    assert [p["name"] for p in client.get("/api/products", params={"q": "tea lights"}).json()] == ["Tea light set"]


def test_product_detail_reports_variant_requirements(client, plain_product):
    jar = client.get(f"/api/products/{JAR_ID}").json()
    assert Decimal(jar["price"]) == Decimal("14.90")
    assert jar["requires_scent"] is True
    assert jar["requires_color"] is False

    pillar = client.get(f"/api/products/{PILLAR_ID}").json()
    assert pillar["requires_scent"] is False
    assert pillar["requires_color"] is True

    plain = client.get(f"/api/products/{plain_product.id}").json()
    assert not plain["requires_scent"] and not plain["requires_color"]

    assert client.get("/api/products/999").status_code == 404


def test_featured(client):
    assert [p["id"] for p in client.get("/api/products/featured").json()] == [JAR_ID]


def test_product_crud_requires_admin(client, customer_headers, admin_headers):
    assert client.post("/api/products", json=NEW_PRODUCT).status_code == 401
    assert client.post("/api/products", json=NEW_PRODUCT, headers=customer_headers).status_code == 403

    created = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)
    assert created.status_code == 201
    product = created.json()
    assert Decimal(product["price"]) == Decimal("12.00")

    changed = {**NEW_PRODUCT, "price": "13.50", "stock": 0}
    updated = client.put(f"/api/products/{product['id']}", json=changed, headers=admin_headers).json()
    assert Decimal(updated["price"]) == Decimal("13.50")
    assert updated["stock"] == 0

    assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_product_validation(client, admin_headers):
    assert client.post("/api/products", json={**NEW_PRODUCT, "price": "-1"}, headers=admin_headers).status_code == 422
    assert client.post("/api/products", json={**NEW_PRODUCT, "stock": -3}, headers=admin_headers).status_code == 422
    assert client.post("/api/products", json={**NEW_PRODUCT, "category_id": 99}, headers=admin_headers).status_code == 400


def test_deleting_product_drops_cart_lines(client, admin_headers, customer_headers):
    client.post("/api/cart", json={"product_id": JAR_ID, "quantity": 1, "scent_id": LAVENDER_ID},
                headers=customer_headers)
    assert client.delete(f"/api/products/{JAR_ID}", headers=admin_headers).status_code == 204
    assert client.get("/api/cart", headers=customer_headers).json()["items"] == []


def test_product_scent_links(client, admin_headers):
    url = f"/api/products/{PILLAR_ID}/scents"
    assert client.get(url).json() == []
    assert client.post(url, json={"scent_id": SANDALWOOD_ID}, headers=admin_headers).status_code == 201
    # linking twice keeps one link
    assert client.post(url, json={"scent_id": SANDALWOOD_ID}, headers=admin_headers).status_code == 201
    assert [s["name"] for s in client.get(url).json()] == ["Sandalwood"]
    assert client.get(f"/api/products/{PILLAR_ID}").json()["requires_scent"] is True

    assert client.post(url, json={"scent_id": 999}, headers=admin_headers).status_code == 400

    assert client.delete(f"{url}/{SANDALWOOD_ID}", headers=admin_headers).status_code == 204
    assert client.get(url).json() == []


def test_product_color_links(client, admin_headers):
    url = f"/api/products/{PILLAR_ID}/colors"
    client.post(url, json={"color_id": IVORY_ID}, headers=admin_headers)
    assert {c["id"] for c in client.get(url).json()} == {WHITE_ID, IVORY_ID}

    assert client.delete(url, headers=admin_headers).status_code == 204
    assert client.get(url).json() == []
    assert client.get(f"/api/products/{PILLAR_ID}").json()["requires_color"] is False


def test_scent_dictionary(client, admin_headers, customer_headers):
    assert [s["name"] for s in client.get("/api/scents").json()] == ["Lavender", "Vanilla", "Sandalwood", "Citrus"]

    created = client.post("/api/scents", json={"name": "Cedar", "active": False}, headers=admin_headers).json()
    assert "Cedar" not in [s["name"] for s in client.get("/api/scents/active").json()]
    assert client.post("/api/scents", json={"name": "Rose"}, headers=customer_headers).status_code == 403

    updated = client.put(f"/api/scents/{created['id']}", json={"name": "Cedarwood", "active": True},
                         headers=admin_headers).json()
    assert updated["name"] == "Cedarwood"
    assert client.get(f"/api/scents/{created['id']}").json()["active"] is True

    assert client.delete(f"/api/scents/{created['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/scents/{created['id']}").status_code == 404


def test_deleting_scent_unlinks_products(client, admin_headers):
    assert client.delete(f"/api/scents/{LAVENDER_ID}", headers=admin_headers).status_code == 204
    assert [s["name"] for s in client.get(f"/api/products/{JAR_ID}/scents").json()] == ["Vanilla"]


def test_color_hex_is_validated(client, admin_headers):
    bad = client.post("/api/colors", json={"name": "Sky", "hex_value": "blue"}, headers=admin_headers)
    assert bad.status_code == 422
    good = client.post("/api/colors", json={"name": "Sky", "hex_value": "#87CEEB"}, headers=admin_headers)
    assert good.status_code == 201


def test_categories(client, admin_headers):
    names = [c["name"] for c in client.get("/api/categories").json()]
    assert names == ["Scented candles", "Decorative candles", "Special occasions"]
    assert [p["id"] for p in client.get("/api/categories/1/products").json()] == [JAR_ID]

    created = client.post("/api/categories", json={"name": "Outdoor"}, headers=admin_headers)
    assert created.status_code == 201
    cat_id = created.json()["id"]
    assert client.put(f"/api/categories/{cat_id}", json={"name": "Garden"}, headers=admin_headers).json()["name"] == "Garden"

    # deleting a category keeps its products
    assert client.delete("/api/categories/1", headers=admin_headers).status_code == 204
    assert client.get(f"/api/products/{JAR_ID}").json()["category_id"] is None
    assert client.get("/api/categories/1").status_code == 404


def test_reviews(client, customer_headers):
    url = f"/api/products/{JAR_ID}/reviews"
    assert client.post(url, json={"rating": 5, "comment": "Lovely"}).status_code == 401
    assert client.post(url, json={"rating": 6}, headers=customer_headers).status_code == 422

    created = client.post(url, json={"rating": 4, "comment": "Lovely"}, headers=customer_headers)
    assert created.status_code == 201
    reviews = client.get(url).json()
    assert len(reviews) == 1
    assert reviews[0]["username"] == "jane"
    assert client.post("/api/products/999/reviews", json={"rating": 3}, headers=customer_headers).status_code == 404
