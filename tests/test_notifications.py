import asyncio

from candleshop.storefront.errors import ConflictError, ReconciliationError
from candleshop.storefront.notifications import AdminNotifications, Toaster

from conftest import CHECKOUT_DATA, JAR_ID, LAVENDER_ID, make_api


def test_toaster_keeps_newest_first_and_limits():
    toaster = Toaster(limit=2)
    toaster.success("One")
    toaster.error(ConflictError("Out of stock"))
    toaster.error(ReconciliationError("Subtotal changed"))
    assert [t.title for t in toaster.toasts] == ["Your cart has changed", "Action not possible"]
    assert all(t.variant == "destructive" for t in toaster.toasts)

    toaster.dismiss(toaster.toasts[0].id)
    assert [t.message for t in toaster.toasts] == ["Out of stock"]
    toaster.clear()
    assert toaster.toasts == []


def test_notifications_are_deduplicated_by_order():
    center = AdminNotifications()
    orders = [{"id": 1, "total": "19.90", "created_at": "2026-01-02T10:00:00Z"}, {"id": 2, "total": "5.00"}]
    assert len(center.merge(orders)) == 2
    assert center.merge(orders) == []
    assert center.unread_count == 2
    assert [n.order_id for n in center.notifications] == [2, 1]
    assert center.notifications[1].created_at.year == 2026

    center.mark_read(1)
    assert center.unread_count == 1
    center.mark_all_read()
    assert center.unread_count == 0

    # read state survives the next poll
    center.merge(orders + [{"id": 3, "total": "7.00"}])
    assert center.unread_count == 1


def test_cleared_notifications_do_not_return():
    center = AdminNotifications()
    center.merge([{"id": 1, "total": "1.00"}])
    center.clear()
    assert center.merge([{"id": 1, "total": "1.00"}]) == []
    assert center.notifications == []


def test_poll_uses_pending_orders(client, customer_headers, admin_token, admin_headers):
    client.post("/api/cart", json={"product_id": JAR_ID, "quantity": 1, "scent_id": LAVENDER_ID},
                headers=customer_headers)
    first = client.post("/api/orders", json=CHECKOUT_DATA, headers=customer_headers).json()
    client.post("/api/cart", json={"product_id": JAR_ID, "quantity": 1, "scent_id": LAVENDER_ID},
                headers=customer_headers)
    second = client.post("/api/orders", json=CHECKOUT_DATA, headers=customer_headers).json()
    client.put(f"/api/orders/{first['id']}/status", json={"status": "shipped"}, headers=admin_headers)

    async def scenario():
        async with make_api(admin_token) as api:
            center = AdminNotifications()
            added = await center.poll(api)
            assert [n.order_id for n in added] == [second["id"]]
            assert await center.poll(api) == []

    asyncio.run(scenario())
