# candleshop/routes/orders.py
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Query, Response, status
from sqlalchemy.orm import Session, joinedload

from candleshop.database import get_db
from candleshop.models.cart import CartItem
from candleshop.models.order import Order, OrderItem
from candleshop.models.product import Product
from candleshop.models.users import User
from candleshop.schemas.order import (
    OrderResponse, OrderItemOut, OrderCreatePayload, OrderStatusPatch, OrderStatus
)
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.pdf import render_order_invoice
from candleshop.utils.pricing import cart_subtotal, line_total, to_money
from candleshop.utils.settings_store import get_settings_map, shipping_quote
from candleshop.utils.tokenJWT import get_current_user, admin_required

router = APIRouter(prefix="/api/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

# Orders in these states can no longer change
TERMINAL_STATUSES = {"completed", "cancelled"}


def _item_to_out(it: OrderItem) -> OrderItemOut:
    return OrderItemOut(
        id=it.id,
        product_id=it.product_id,
        product_name=it.product_name,
        quantity=it.quantity,
        price=it.price,
        scent_id=it.scent_id,
        scent_name=it.scent_name,
        color_id=it.color_id,
        color_name=it.color_name,
        line_total=line_total(it.price, it.quantity),
    )

# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        subtotal=order.subtotal,
        shipping_cost=order.shipping_cost,
        total=order.total,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        shipping_address=order.shipping_address,
        shipping_city=order.shipping_city,
        shipping_postal_code=order.shipping_postal_code,
        shipping_country=order.shipping_country,
        customer_note=order.customer_note,
        created_at=order.created_at,
        items=[_item_to_out(it) for it in order.items],
    )

def _orders_query(db: Session):
    return db.query(Order).options(joinedload(Order.items)).order_by(Order.created_at.desc(), Order.id.desc())

def _get_visible_order(db: Session, order_id: int, user: User) -> Order:
    order = _orders_query(db).filter(Order.id == order_id).first()
    # Other customers' orders look exactly like missing ones
    if not order or (order.user_id != user.id and not user.is_admin):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


# Place an order from the current cart
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart_items = db.query(CartItem).filter(CartItem.user_id == current_user.id).order_by(CartItem.id.asc()).all()
    if not cart_items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    # Lock the product rows so concurrent checkouts cannot both take the last units
    products: Dict[int, Product] = {}
    for ci in cart_items:
        if ci.product_id not in products:
            prod = db.query(Product).filter(Product.id == ci.product_id).with_for_update().first()
            if not prod:
                db.rollback()
                raise HTTPException(status_code=409, detail="A product in your cart is no longer available")
            products[ci.product_id] = prod

    subtotal = cart_subtotal((products[ci.product_id].price, ci.quantity) for ci in cart_items)
    if payload.expected_subtotal is not None and to_money(payload.expected_subtotal) != subtotal:
        db.rollback()
        write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"reason": "subtotal_mismatch", "server_subtotal": str(subtotal)})
        raise HTTPException(
            status_code=409,
            detail=f"Your cart has changed, the current subtotal is {subtotal}. Please review your cart.",
        )

    # Several variant lines may share one product
    requested = defaultdict(int)
    for ci in cart_items:
        requested[ci.product_id] += ci.quantity
    for product_id, qty in requested.items():
        prod = products[product_id]
        if prod.stock < qty:
            db.rollback()
            raise HTTPException(status_code=409, detail=f"Insufficient stock for: {prod.name}")

    quote = shipping_quote(db, subtotal)

    order = Order(
        user_id=current_user.id,
        status="pending",
        subtotal=subtotal,
        shipping_cost=quote.shipping,
        total=quote.total,
        payment_method=payload.payment_method,
        payment_status="pending",
        shipping_address=payload.shipping_address,
        shipping_city=payload.shipping_city,
        shipping_postal_code=payload.shipping_postal_code,
        shipping_country=payload.shipping_country,
        customer_note=payload.customer_note,
    )
    db.add(order)

    # Move cart lines to order lines
    for ci in cart_items:
        prod = products[ci.product_id]
        db.add(OrderItem(
            order=order,
            product_id=prod.id,
            product_name=prod.name,
            quantity=ci.quantity,
            price=prod.price,
            scent_id=ci.scent_id,
            scent_name=ci.scent.name if ci.scent else None,
            color_id=ci.color_id,
            color_name=ci.color.name if ci.color else None,
        ))
    for product_id, qty in requested.items():
        products[product_id].stock -= qty
    for ci in cart_items:
        db.delete(ci)

    db.commit()
    db.refresh(order)

    logger.info("Order %s placed by user %s, total %s", order.id, current_user.id, order.total)
    write_log(
        db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": order.id, "total": str(order.total)},
    )
    return _order_to_out(order)


# Admins see every order, customers only their own
@router.get("", response_model=List[OrderResponse])
def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = _orders_query(db)
    if not current_user.is_admin:
        q = q.filter(Order.user_id == current_user.id)
    if status_filter:
        q = q.filter(Order.status == status_filter)
    return [_order_to_out(o) for o in q.all()]


@router.get("/user", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rows = _orders_query(db).filter(Order.user_id == current_user.id).all()
    return [_order_to_out(o) for o in rows]


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _order_to_out(_get_visible_order(db, order_id, current_user))


@router.get("/{order_id}/items", response_model=List[OrderItemOut])
def get_order_items(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return [_item_to_out(it) for it in _get_visible_order(db, order_id, current_user).items]


@router.get("/{order_id}/invoice")
def get_order_invoice(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = _get_visible_order(db, order_id, current_user)
    pdf_bytes = render_order_invoice(order, get_settings_map(db))

    write_log(db, user_id=current_user.id, action="INVOICE_DOWNLOAD", resource="orders",
              status="SUCCESS", ip=client_ip(request), meta={"order_id": order.id})
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="order-{order.id}.pdf"'},
    )


# Manually update order status (admin only)
@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    order = _orders_query(db).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    old_status, new_status = order.status, payload.status
    if old_status in TERMINAL_STATUSES and new_status != old_status:
        raise HTTPException(status_code=409, detail=f"Cannot change status from {old_status}")

    if new_status == "cancelled" and old_status != "cancelled":
        # Units go back on the shelf
        for it in order.items:
            if it.product_id is not None:
                prod = db.query(Product).filter(Product.id == it.product_id).with_for_update().first()
                if prod:
                    prod.stock += it.quantity
    if new_status == "completed":
        order.payment_status = "paid"

    order.status = new_status
    db.commit()
    db.refresh(order)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": old_status, "new": new_status})
    return _order_to_out(order)
