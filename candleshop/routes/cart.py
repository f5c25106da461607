# candleshop/routes/cart.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.cart import CartItem
from candleshop.models.product import Product
from candleshop.models.users import User
from candleshop.schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.pricing import cart_subtotal, line_total
from candleshop.utils.settings_store import shipping_quote
from candleshop.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def _user_items(db: Session, user_id: int) -> List[CartItem]:
    return db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.id.asc()).all()

def _item_to_out(it: CartItem) -> CartItemOut:
    product = it.product
    return CartItemOut(
        id=it.id,
        product_id=it.product_id,
        name=product.name,
        price=product.price,
        quantity=it.quantity,
        stock=product.stock,
        image_url=product.image_url,
        scent_id=it.scent_id,
        scent_name=it.scent.name if it.scent else None,
        color_id=it.color_id,
        color_name=it.color.name if it.color else None,
        line_total=line_total(product.price, it.quantity),
    )

def _cart_to_out(db: Session, items: List[CartItem]) -> CartOut:
    # Lines whose product disappeared are not priced
    items = [it for it in items if it.product is not None]
    subtotal = cart_subtotal((it.product.price, it.quantity) for it in items)
    quote = shipping_quote(db, subtotal)
    return CartOut(
        items=[_item_to_out(it) for it in items],
        item_count=sum(it.quantity for it in items),
        subtotal=subtotal,
        # An empty cart is never charged for shipping
        shipping=quote.shipping if items else 0,
        total=quote.total if items else subtotal,
        free_shipping_remaining=quote.remaining,
        free_shipping_progress=quote.progress,
    )

def _check_quantity(quantity: int, product: Product):
    if quantity < 1:
        raise HTTPException(status_code=400, detail="Invalid quantity")
    if quantity > product.stock:
        raise HTTPException(status_code=400, detail=f"Only {product.stock} pcs of '{product.name}' in stock")

def _check_variants(product: Product, scent_id: Optional[int], color_id: Optional[int]):
    # A missing required choice is a conflict with the product definition
    if product.requires_scent and scent_id is None:
        raise HTTPException(status_code=409, detail="Please choose a scent for this product")
    if product.requires_color and color_id is None:
        raise HTTPException(status_code=409, detail="Please choose a color for this product")

    if scent_id is not None and scent_id not in {s.id for s in product.scents}:
        raise HTTPException(status_code=400, detail="Scent is not available for this product")
    if color_id is not None and color_id not in {c.id for c in product.colors}:
        raise HTTPException(status_code=400, detail="Color is not available for this product")


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(db, _user_items(db, current_user.id))


@router.post("", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    _check_quantity(payload.quantity, product)
    _check_variants(product, payload.scent_id, payload.color_id)

    # Same product with the same variants is merged into one line
    item = db.query(CartItem).filter(
        CartItem.user_id == current_user.id,
        CartItem.product_id == product.id,
        CartItem.scent_id.is_(None) if payload.scent_id is None else CartItem.scent_id == payload.scent_id,
        CartItem.color_id.is_(None) if payload.color_id is None else CartItem.color_id == payload.color_id,
    ).first()

    if item:
        new_quantity = item.quantity + payload.quantity
        if new_quantity > product.stock:
            raise HTTPException(
                status_code=409,
                detail=f"Cannot add {payload.quantity} more, only {product.stock} pcs of '{product.name}' in stock",
            )
        item.quantity = new_quantity
    else:
        item = CartItem(
            user_id=current_user.id,
            product_id=product.id,
            quantity=payload.quantity,
            scent_id=payload.scent_id,
            color_id=payload.color_id,
        )
        db.add(item)

    db.commit()
    db.refresh(item)

    write_log(
        db, user_id=current_user.id, action="CART_ADD", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": product.id, "quantity": payload.quantity},
    )
    return _item_to_out(item)


@router.put("/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.user_id == current_user.id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")

    # Validate stock for the new quantity
    _check_quantity(payload.quantity, item.product)

    item.quantity = payload.quantity
    db.commit()
    db.refresh(item)

    write_log(
        db, user_id=current_user.id, action="CART_UPDATE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"item_id": item_id, "quantity": payload.quantity},
    )
    return _item_to_out(item)


# Removing a line that is already gone is still a success
@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    deleted = db.query(CartItem).filter(
        CartItem.id == item_id, CartItem.user_id == current_user.id
    ).delete(synchronize_session=False)
    db.commit()

    if deleted:
        write_log(
            db, user_id=current_user.id, action="CART_DELETE", resource="cart", status="SUCCESS",
            ip=client_ip(request), meta={"item_id": item_id},
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db.query(CartItem).filter(CartItem.user_id == current_user.id).delete(synchronize_session=False)
    db.commit()

    write_log(db, user_id=current_user.id, action="CART_CLEAR", resource="cart",
              status="SUCCESS", ip=client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
