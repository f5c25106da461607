# candleshop/routes/variants.py
# Scent and color dictionaries. Both resources share the same CRUD shape,
# so the routes are generated from one factory.
from typing import List, Type

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from candleshop.database import Base, get_db
from candleshop.models.cart import CartItem
from candleshop.models.product import Scent, Color, ProductScent, ProductColor
from candleshop.models.users import User
from candleshop.schemas.product import ScentCreate, ScentOut, ColorCreate, ColorOut
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.tokenJWT import admin_required


def _variant_router(
    name: str,
    model: Type[Base],
    link_model: Type[Base],
    link_column: str,
    create_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
) -> APIRouter:
    router = APIRouter(prefix=f"/api/{name}s", tags=[name.capitalize() + "s"])
    label = name.capitalize()
    action = name.upper()

    def _get_or_404(db: Session, item_id: int):
        item = db.query(model).filter(model.id == item_id).first()
        if not item:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return item

    @router.get("", response_model=List[out_schema])
    def list_all(db: Session = Depends(get_db)):
        return db.query(model).order_by(model.id.asc()).all()

    @router.get("/active", response_model=List[out_schema])
    def list_active(db: Session = Depends(get_db)):
        return db.query(model).filter(model.active.is_(True)).order_by(model.id.asc()).all()

    @router.get("/{item_id}", response_model=out_schema)
    def get_one(item_id: int, db: Session = Depends(get_db)):
        return _get_or_404(db, item_id)

    @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create(
        payload: create_schema,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(admin_required),
    ):
        item = model(**payload.model_dump())
        db.add(item)
        db.commit()
        db.refresh(item)
        write_log(db, user_id=current_user.id, action=f"{action}_CREATE", resource=f"{name}s",
                  status="SUCCESS", ip=client_ip(request), meta={"id": item.id})
        return item

    @router.put("/{item_id}", response_model=out_schema)
    def update(
        item_id: int,
        payload: create_schema,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(admin_required),
    ):
        item = _get_or_404(db, item_id)
        for key, value in payload.model_dump().items():
            setattr(item, key, value)
        db.commit()
        db.refresh(item)
        write_log(db, user_id=current_user.id, action=f"{action}_UPDATE", resource=f"{name}s",
                  status="SUCCESS", ip=client_ip(request), meta={"id": item.id})
        return item

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete(
        item_id: int,
        request: Request,
        db: Session = Depends(get_db),
        current_user: User = Depends(admin_required),
    ):
        item = _get_or_404(db, item_id)
        db.query(link_model).filter(getattr(link_model, link_column) == item.id).delete(synchronize_session=False)
        # Cart lines pointing at the variant fall back to "no selection"
        db.query(CartItem).filter(getattr(CartItem, link_column) == item.id).update(
            {getattr(CartItem, link_column): None}, synchronize_session=False
        )
        db.delete(item)
        db.commit()
        write_log(db, user_id=current_user.id, action=f"{action}_DELETE", resource=f"{name}s",
                  status="SUCCESS", ip=client_ip(request), meta={"id": item_id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


scents_router = _variant_router("scent", Scent, ProductScent, "scent_id", ScentCreate, ScentOut)
colors_router = _variant_router("color", Color, ProductColor, "color_id", ColorCreate, ColorOut)
