from decimal import Decimal

GENERAL = {
    "store_name": "Candle Corner",
    "store_description": "Hand poured candles since 2015",
    "store_owner": "Ana",
    "store_legal_name": "Candle Corner Ltd",
    "store_tax_id": "DE123456",
}
CONTACT = {
    "address": "Market square 4",
    "city": "Ljubljana",
    "postalCode": "1000",
    "phone": "+386 1 234 567",
    "email": "hello@candlecorner.example",
    "workingHours": "Mon-Fri 9-17",
}


def test_shipping_settings_defaults(client):
    assert client.get("/api/settings/shipping").json() == {"shippingCost": "5.00", "freeShippingThreshold": "50.00"}


def test_update_shipping_settings(client, admin_headers):
    response = client.post("/api/settings/shipping", json={"shippingCost": "4.5", "freeShippingThreshold": "0"},
                           headers=admin_headers)
    assert response.status_code == 200
    assert client.get("/api/settings/shipping").json() == {"shippingCost": "4.50", "freeShippingThreshold": "0.00"}

    # threshold 0 switches free shipping off
    quote = client.get("/api/shipping/quote", params={"subtotal": "500"}).json()
    assert Decimal(quote["shipping"]) == Decimal("4.50")


def test_shipping_settings_reject_bad_numbers(client, admin_headers, customer_headers):
    for payload in ({"shippingCost": "-1", "freeShippingThreshold": "50"},
                    {"shippingCost": "five", "freeShippingThreshold": "50"}):
        assert client.post("/api/settings/shipping", json=payload, headers=admin_headers).status_code == 400
    ok = {"shippingCost": "5", "freeShippingThreshold": "50"}
    assert client.post("/api/settings/shipping", json=ok, headers=customer_headers).status_code == 403


def test_legacy_shipping_key_is_an_alias(client, admin_headers):
    client.delete("/api/settings/shippingCost", headers=admin_headers)
    client.post("/api/settings", json={"key": "standardShippingRate", "value": "7"}, headers=admin_headers)
    assert client.get("/api/settings/shipping").json()["shippingCost"] == "7.00"


def test_broken_stored_value_falls_back(client, admin_headers):
    client.put("/api/settings/freeShippingThreshold", json={"value": "soon"}, headers=admin_headers)
    assert client.get("/api/settings/shipping").json()["freeShippingThreshold"] == "50.00"


def test_shipping_quote(client):
    quote = client.get("/api/shipping/quote", params={"subtotal": "45"}).json()
    assert Decimal(quote["shipping"]) == Decimal("5.00")
    assert Decimal(quote["remaining"]) == Decimal("5.00")
    assert quote["progress"] == 90.0
    assert Decimal(quote["total"]) == Decimal("50.00")

    assert client.get("/api/shipping/quote", params={"subtotal": "50"}).json()["is_free"] is True
    assert client.get("/api/shipping/quote", params={"subtotal": "-1"}).status_code == 422


def test_general_settings_group(client, admin_headers):
    assert client.get("/api/settings/general").json()["store_name"] == "Kerzenwelt"
    assert client.post("/api/settings/general", json=GENERAL, headers=admin_headers).status_code == 200
    assert client.get("/api/settings/general").json() == GENERAL

    short = {**GENERAL, "store_description": "short"}
    assert client.post("/api/settings/general", json=short, headers=admin_headers).status_code == 422


def test_contact_settings_group(client, admin_headers):
    assert client.get("/api/settings/contact").json()["email"] == ""
    assert client.post("/api/settings/contact", json=CONTACT, headers=admin_headers).status_code == 200
    assert client.get("/api/settings/contact").json()["postalCode"] == "1000"

    bad = {**CONTACT, "email": "not-an-email"}
    assert client.post("/api/settings/contact", json=bad, headers=admin_headers).status_code == 422


def test_generic_settings(client, admin_headers):
    keys = [s["key"] for s in client.get("/api/settings").json()]
    assert "shippingCost" in keys

    created = client.post("/api/settings", json={"key": "banner", "value": "Summer sale"}, headers=admin_headers)
    assert created.status_code == 201
    dup = client.post("/api/settings", json={"key": "banner", "value": "again"}, headers=admin_headers)
    assert dup.status_code == 400

    assert client.put("/api/settings/banner", json={"value": "Autumn sale"}, headers=admin_headers).json()["value"] == "Autumn sale"
    assert client.get("/api/settings/banner").json()["value"] == "Autumn sale"
    assert client.put("/api/settings/missing", json={"value": "x"}, headers=admin_headers).status_code == 404

    assert client.delete("/api/settings/banner", headers=admin_headers).status_code == 204
    assert client.get("/api/settings/banner").status_code == 404


def test_pages(client, admin_headers, customer_headers):
    about = client.get("/api/pages/about").json()
    assert about["title"] == "About us"

    saved = client.post("/api/pages/about", json={"title": "Our story", "content": "It began in a kitchen."},
                        headers=admin_headers)
    assert saved.status_code == 200
    assert client.get("/api/pages/about").json()["content"] == "It began in a kitchen."

    denied = client.post("/api/pages/blog", json={"title": "x", "content": "y"}, headers=customer_headers)
    assert denied.status_code == 403
    assert client.get("/api/pages/careers").status_code == 422


def test_missing_page_is_404(client, admin_headers, db_session):
    from candleshop.models.content import Page
    db_session.query(Page).filter(Page.type == "blog").delete()
    db_session.commit()
    assert client.get("/api/pages/blog").status_code == 404

    created = client.post("/api/pages/blog", json={"title": "Blog", "content": "First post"}, headers=admin_headers)
    assert created.json()["type"] == "blog"


def test_oversized_shipping_values_are_rejected(client, admin_headers):
    payload = {"shippingCost": "1e30", "freeShippingThreshold": "50"}
    assert client.post("/api/settings/shipping", json=payload, headers=admin_headers).status_code == 400
    assert client.get("/api/settings/shipping").json()["shippingCost"] == "5.00"

    assert client.get("/api/shipping/quote", params={"subtotal": "1e30"}).status_code == 422


def test_oversized_stored_value_does_not_break_the_cart(client, admin_headers, customer_headers):
    # the generic key-value endpoint stores anything
    client.put("/api/settings/shippingCost", json={"value": "1e30"}, headers=admin_headers)
    assert client.get("/api/settings/shipping").json()["shippingCost"] == "5.00"

    response = client.get("/api/cart", headers=customer_headers)
    assert response.status_code == 200
    assert Decimal(client.get("/api/shipping/quote", params={"subtotal": "10"}).json()["shipping"]) == Decimal("5.00")
