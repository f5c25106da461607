# candleshop/routes/products.py
import logging
from decimal import Decimal
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.cart import CartItem
from candleshop.models.order import OrderItem
from candleshop.models.product import Product, Category, Scent, Color, ProductScent, ProductColor, Review
from candleshop.models.users import User
from candleshop.schemas import product as product_schemas
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.tokenJWT import get_current_user, admin_required

router = APIRouter(prefix="/api/products", tags=["Products"])
logger = logging.getLogger(__name__)


# ---- HELPERS ----
def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _check_category(db: Session, category_id: Optional[int]):
    if category_id is not None and not db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(status_code=400, detail="Category does not exist")


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    category_id: Optional[int] = Query(None, description="Filter by category"),
    q: Optional[str] = Query(None, description="Search in name and description"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: bool = Query(False, description="Only products with stock > 0"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if in_stock:
        query = query.filter(Product.stock > 0)

    return query.order_by(Product.id.asc()).all()


@router.get("/featured", response_model=List[product_schemas.ProductOut])
def list_featured_products(db: Session = Depends(get_db)):
    return db.query(Product).filter(Product.featured.is_(True)).order_by(Product.id.asc()).all()


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


@router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _check_category(db, payload.category_id)

    product = Product(**payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "name": product.name},
    )
    return product


@router.put("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    product = _get_product_or_404(db, product_id)
    _check_category(db, payload.category_id)

    for key, value in payload.model_dump().items():
        setattr(product, key, value)

    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id},
    )
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    product = _get_product_or_404(db, product_id)

    # Carts lose the line, past orders keep their snapshot
    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None}, synchronize_session=False
    )
    db.query(Review).filter(Review.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": product_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================
# PRODUCT SCENTS
# =========================
@router.get("/{product_id}/scents", response_model=List[product_schemas.ScentOut])
def list_product_scents(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id).scents


@router.post("/{product_id}/scents", response_model=product_schemas.ScentOut, status_code=status.HTTP_201_CREATED)
def add_product_scent(
    product_id: int,
    payload: product_schemas.ProductScentLink,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _get_product_or_404(db, product_id)
    scent = db.query(Scent).filter(Scent.id == payload.scent_id).first()
    if not scent:
        raise HTTPException(status_code=400, detail="Invalid scent ID")

    exists = db.query(ProductScent).filter(
        ProductScent.product_id == product_id, ProductScent.scent_id == scent.id
    ).first()
    if not exists:
        db.add(ProductScent(product_id=product_id, scent_id=scent.id))
        db.commit()
    return scent


@router.delete("/{product_id}/scents/{scent_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_product_scent(
    product_id: int,
    scent_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    db.query(ProductScent).filter(
        ProductScent.product_id == product_id, ProductScent.scent_id == scent_id
    ).delete(synchronize_session=False)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{product_id}/scents", status_code=status.HTTP_204_NO_CONTENT)
def remove_all_product_scents(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    db.query(ProductScent).filter(ProductScent.product_id == product_id).delete(synchronize_session=False)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================
# PRODUCT COLORS
# =========================
@router.get("/{product_id}/colors", response_model=List[product_schemas.ColorOut])
def list_product_colors(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id).colors


@router.post("/{product_id}/colors", response_model=product_schemas.ColorOut, status_code=status.HTTP_201_CREATED)
def add_product_color(
    product_id: int,
    payload: product_schemas.ProductColorLink,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _get_product_or_404(db, product_id)
    color = db.query(Color).filter(Color.id == payload.color_id).first()
    if not color:
        raise HTTPException(status_code=400, detail="Invalid color ID")

    exists = db.query(ProductColor).filter(
        ProductColor.product_id == product_id, ProductColor.color_id == color.id
    ).first()
    if not exists:
        db.add(ProductColor(product_id=product_id, color_id=color.id))
        db.commit()
    return color


@router.delete("/{product_id}/colors/{color_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_product_color(
    product_id: int,
    color_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    db.query(ProductColor).filter(
        ProductColor.product_id == product_id, ProductColor.color_id == color_id
    ).delete(synchronize_session=False)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{product_id}/colors", status_code=status.HTTP_204_NO_CONTENT)
def remove_all_product_colors(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    db.query(ProductColor).filter(ProductColor.product_id == product_id).delete(synchronize_session=False)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================
# REVIEWS
# =========================
def _review_to_out(review: Review) -> product_schemas.ReviewOut:
    out = product_schemas.ReviewOut.model_validate(review)
    out.username = review.user.username if review.user else None
    return out


@router.get("/{product_id}/reviews", response_model=List[product_schemas.ReviewOut])
def list_reviews(product_id: int, db: Session = Depends(get_db)):
    reviews = db.query(Review).filter(Review.product_id == product_id).order_by(Review.created_at.desc(), Review.id.desc()).all()
    return [_review_to_out(r) for r in reviews]


@router.post("/{product_id}/reviews", response_model=product_schemas.ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    product_id: int,
    payload: product_schemas.ReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_product_or_404(db, product_id)
    review = Review(user_id=current_user.id, product_id=product_id, **payload.model_dump())
    db.add(review)
    db.commit()
    db.refresh(review)

    write_log(db, user_id=current_user.id, action="REVIEW_CREATE", resource="reviews",
              status="SUCCESS", ip=client_ip(request), meta={"product_id": product_id, "rating": review.rating})
    return _review_to_out(review)
