import asyncio

from candleshop.storefront.admin import AdminPanel, SettingsPanel
from candleshop.storefront.errors import AuthError

from conftest import CHECKOUT_DATA, PILLAR_ID, WHITE_ID, make_api


def test_category_panel_crud(admin_token):
    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "categories")
            assert len(await panel.load()) == 3

            created = await panel.save({"name": "Outdoor", "description": ""})
            assert created["description"] is None
            assert len(panel.rows) == 4

            updated = await panel.save({"name": "Garden"}, item_id=created["id"])
            assert updated["name"] == "Garden"
            assert [r["name"] for r in panel.rows if r["id"] == created["id"]] == ["Garden"]

            assert await panel.delete(created["id"]) is True
            assert len(panel.rows) == 3
            # deleting again is not an error
            assert await panel.delete(created["id"]) is True
            assert panel.toaster.toasts[0].title == "Deleted"

    asyncio.run(scenario())


def test_invalid_form_is_not_sent(admin_token):
    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "products")
            await panel.load()
            before = len(panel.rows)
            assert await panel.save({"name": "", "price": "abc"}) is None
            assert set(panel.field_errors) == {"name", "price"}
            assert len(await panel.load()) == before

    asyncio.run(scenario())


def test_server_errors_become_field_errors_and_toasts(admin_token):
    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "products")
            saved = await panel.save({"name": "Ghost", "price": "3", "category_id": 99})
            assert saved is None
            assert panel.last_error.status_code == 400
            assert panel.toaster.toasts[0].message == "Category does not exist"

    asyncio.run(scenario())


def test_product_panel_creates_product(admin_token):
    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "products")
            saved = await panel.save({"name": "Soy tin", "price": "7.50", "stock": "4", "category_id": "2"})
            assert saved["price"] == "7.50"
            assert saved["category_id"] == 2

    asyncio.run(scenario())


def test_customer_cannot_use_admin_panels(customer_token):
    async def scenario():
        async with make_api(customer_token) as api:
            panel = AdminPanel(api, "scents")
            assert await panel.save({"name": "Rose"}) is None
            assert isinstance(panel.last_error, AuthError)

    asyncio.run(scenario())


def test_users_panel(admin_token, customer_headers, client):
    jane = client.get("/api/user", headers=customer_headers).json()

    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "users")
            rows = await panel.load(q="jane")
            assert [r["username"] for r in rows] == ["jane"]
            saved = await panel.save({"is_admin": True}, item_id=jane["id"])
            assert saved["is_admin"] is True
            # accounts are created by registering, not from the panel
            assert await panel.save({"is_admin": False}) is None

    asyncio.run(scenario())


def test_settings_panels(admin_token):
    async def scenario():
        async with make_api(admin_token) as api:
            shipping = SettingsPanel(api, "shipping")
            assert await shipping.load() == {"shippingCost": "5.00", "freeShippingThreshold": "50.00"}
            assert await shipping.save({"shippingCost": "-2", "freeShippingThreshold": "50"}) is False
            assert "shippingCost" in shipping.field_errors
            assert await shipping.save({"shippingCost": "6", "freeShippingThreshold": "75"}) is True
            assert (await api.get_shipping_settings())["freeShippingThreshold"] == "75.00"

            about = SettingsPanel(api, "page:about")
            assert (await about.load())["title"] == "About us"
            assert await about.save({"title": "Our story", "content": "Small batches."}) is True
            assert about.values["title"] == "Our story"

    asyncio.run(scenario())


def test_orders_panel_only_changes_status(admin_token, client, customer_headers):
    client.post("/api/cart", json={"product_id": PILLAR_ID, "quantity": 2, "color_id": WHITE_ID},
                headers=customer_headers)
    order = client.post("/api/orders", json=CHECKOUT_DATA, headers=customer_headers).json()

    async def scenario():
        async with make_api(admin_token) as api:
            panel = AdminPanel(api, "orders")
            assert [r["id"] for r in await panel.load(status="pending")] == [order["id"]]
            assert await panel.save({"status": "lost"}, item_id=order["id"]) is None
            assert "status" in panel.field_errors
            saved = await panel.save({"status": "processing"}, item_id=order["id"])
            assert saved["status"] == "processing"
            assert await panel.delete(order["id"]) is False

    asyncio.run(scenario())
