# candleshop/routes/admin.py
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.cart import CartItem
from candleshop.models.order import Order
from candleshop.models.product import Product, Review
from candleshop.models.users import User
from candleshop.schemas.user import AdminFlagUpdate, UserResponse
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.tokenJWT import get_current_user, admin_required

router = APIRouter(prefix="/api", tags=["Admin"])

# Threshold for low stock alert
LOW_STOCK_THRESHOLD = 5

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

class StatsSummary(BaseModel):
    total_revenue: str
    total_orders: int
    total_users: int
    total_products: int
    low_stock_products: int
    orders_by_status: Dict[str, int]


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by username or e-mail"),
    is_admin: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: Literal["id", "username", "email", "last_name", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter((User.email.ilike(like)) | (User.username.ilike(like)))
    if is_admin is not None:
        query = query.filter(User.is_admin.is_(is_admin))

    sort_map = {
        "id": User.id,
        "username": User.username,
        "email": User.email,
        "last_name": User.last_name,
        "created_at": User.created_at,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": users, "total": total, "page": page, "page_size": page_size}


# Grant or revoke admin rights (Admin only)
@router.put("/users/{user_id}/admin", response_model=UserResponse)
def update_user_admin_flag(
    user_id: int,
    payload: AdminFlagUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == current_user.id and not payload.is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own admin rights")

    user.is_admin = payload.is_admin
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ADMIN_FLAG", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"target_user_id": user.id, "is_admin": user.is_admin})
    return user


# Delete an account: customers their own, admins anyone else's
@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Prevent an admin from locking the shop out by deleting themselves
    if user.id == current_user.id and current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    # Orders are kept for bookkeeping, so accounts that placed one stay
    if db.query(Order).filter(Order.user_id == user.id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User has orders and cannot be deleted")

    db.query(CartItem).filter(CartItem.user_id == user.id).delete(synchronize_session=False)
    db.query(Review).filter(Review.user_id == user.id).delete(synchronize_session=False)
    username = user.username
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id if current_user.id != user_id else None, action="USER_DELETE",
              resource="users", status="SUCCESS", ip=client_ip(request), meta={"username": username})
    return {"message": f"User {username} has been deleted"}


# Dashboard summary
@router.get("/admin/stats", response_model=StatsSummary)
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    # Cancelled orders do not count as revenue
    total_revenue = db.query(func.sum(Order.total)).filter(Order.status != "cancelled").scalar() or 0

    by_status = dict(
        db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
    )

    return StatsSummary(
        total_revenue=f"{total_revenue:.2f}",
        total_orders=db.query(Order).count(),
        total_users=db.query(User).count(),
        total_products=db.query(Product).count(),
        low_stock_products=db.query(Product).filter(Product.stock <= LOW_STOCK_THRESHOLD).count(),
        orders_by_status=by_status,
    )
