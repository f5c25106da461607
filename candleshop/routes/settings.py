# candleshop/routes/settings.py
from decimal import Decimal
from typing import List, Type

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.content import Setting
from candleshop.models.users import User
from candleshop.schemas.content import (
    SettingCreate, SettingValue, SettingOut,
    GeneralSettings, ContactSettings, ShippingSettings, ShippingQuoteOut,
)
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.settings_store import get_settings_map, upsert_settings, shipping_quote
from candleshop.utils.pricing import MAX_AMOUNT, to_money
from candleshop.utils.shipping import rates_from_settings
from candleshop.utils.tokenJWT import admin_required

router = APIRouter(prefix="/api", tags=["Settings"])


# ---- Setting groups edited together by the admin forms ----
def _group_values(db: Session, schema: Type[BaseModel]) -> dict:
    stored = get_settings_map(db, schema.model_fields.keys())
    return {key: stored.get(key, "") for key in schema.model_fields}

def _save_group(db: Session, payload: BaseModel, user: User, request: Request, group: str) -> dict:
    values = {key: str(value) for key, value in payload.model_dump().items()}
    saved = upsert_settings(db, values)
    write_log(db, user_id=user.id, action="SETTINGS_UPDATE", resource="settings",
              status="SUCCESS", ip=client_ip(request), meta={"group": group, "keys": sorted(values)})
    return saved


@router.get("/settings/general")
def get_general_settings(db: Session = Depends(get_db)):
    return _group_values(db, GeneralSettings)

@router.post("/settings/general")
def save_general_settings(
    payload: GeneralSettings, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    return _save_group(db, payload, current_user, request, "general")


@router.get("/settings/contact")
def get_contact_settings(db: Session = Depends(get_db)):
    return _group_values(db, ContactSettings)

@router.post("/settings/contact")
def save_contact_settings(
    payload: ContactSettings, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    return _save_group(db, payload, current_user, request, "contact")


# Effective rates, after fallbacks for missing or broken values
@router.get("/settings/shipping")
def get_shipping_settings(db: Session = Depends(get_db)):
    flat_rate, free_threshold = rates_from_settings(get_settings_map(db))
    return {"shippingCost": str(flat_rate), "freeShippingThreshold": str(free_threshold)}

@router.post("/settings/shipping")
def save_shipping_settings(
    payload: ShippingSettings, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    for key, raw in payload.model_dump().items():
        try:
            amount = to_money(raw)
        except ValueError:
            amount = None
        if amount is None or amount < 0 or amount > MAX_AMOUNT:
            raise HTTPException(status_code=400, detail=f"{key} must be a number between 0 and {MAX_AMOUNT}")
    return _save_group(db, payload, current_user, request, "shipping")


@router.get("/shipping/quote", response_model=ShippingQuoteOut)
def get_shipping_quote(
    subtotal: Decimal = Query(..., ge=0, le=MAX_AMOUNT),
    db: Session = Depends(get_db),
):
    quote = shipping_quote(db, subtotal)
    return ShippingQuoteOut(
        subtotal=quote.subtotal, flat_rate=quote.flat_rate, free_threshold=quote.free_threshold,
        shipping=quote.shipping, total=quote.total, is_free=quote.is_free,
        remaining=quote.remaining, progress=quote.progress,
    )


# ---- Generic key-value resource ----
@router.get("/settings", response_model=List[SettingOut])
def list_settings(db: Session = Depends(get_db)):
    return db.query(Setting).order_by(Setting.key.asc()).all()


@router.get("/settings/{key}", response_model=SettingOut)
def get_setting(key: str, db: Session = Depends(get_db)):
    setting = db.query(Setting).filter(Setting.key == key).first()
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return setting


@router.post("/settings", response_model=SettingOut, status_code=status.HTTP_201_CREATED)
def create_setting(
    payload: SettingCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    if db.query(Setting).filter(Setting.key == payload.key).first():
        raise HTTPException(status_code=400, detail="Setting with this key already exists")

    setting = Setting(key=payload.key, value=payload.value)
    db.add(setting)
    db.commit()
    db.refresh(setting)

    write_log(db, user_id=current_user.id, action="SETTING_CREATE", resource="settings",
              status="SUCCESS", ip=client_ip(request), meta={"key": setting.key})
    return setting


@router.put("/settings/{key}", response_model=SettingOut)
def update_setting(
    key: str, payload: SettingValue, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    setting = db.query(Setting).filter(Setting.key == key).first()
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")

    setting.value = payload.value
    db.commit()
    db.refresh(setting)

    write_log(db, user_id=current_user.id, action="SETTING_UPDATE", resource="settings",
              status="SUCCESS", ip=client_ip(request), meta={"key": key})
    return setting


@router.delete("/settings/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_setting(
    key: str, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(admin_required),
):
    db.query(Setting).filter(Setting.key == key).delete(synchronize_session=False)
    db.commit()
    write_log(db, user_id=current_user.id, action="SETTING_DELETE", resource="settings",
              status="SUCCESS", ip=client_ip(request), meta={"key": key})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
