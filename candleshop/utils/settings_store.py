# candleshop/utils/settings_store.py
from typing import Dict, Iterable, Optional
from sqlalchemy.orm import Session

from candleshop.models.content import Setting
from candleshop.utils.shipping import (
    ShippingQuote, quote_from_settings,
    SHIPPING_COST_KEY, FREE_SHIPPING_THRESHOLD_KEY, LEGACY_SHIPPING_COST_KEY,
)

SHIPPING_KEYS = (SHIPPING_COST_KEY, FREE_SHIPPING_THRESHOLD_KEY, LEGACY_SHIPPING_COST_KEY)


def get_settings_map(db: Session, keys: Optional[Iterable[str]] = None) -> Dict[str, str]:
    query = db.query(Setting)
    if keys is not None:
        query = query.filter(Setting.key.in_(list(keys)))
    return {s.key: s.value for s in query.all()}


def upsert_settings(db: Session, values: Dict[str, str]) -> Dict[str, str]:
    """Writes every key in one transaction, creating missing rows."""
    existing = {s.key: s for s in db.query(Setting).filter(Setting.key.in_(list(values))).all()}
    for key, value in values.items():
        row = existing.get(key)
        if row:
            row.value = value
        else:
            db.add(Setting(key=key, value=value))
    db.commit()
    return get_settings_map(db, values.keys())


def shipping_quote(db: Session, subtotal) -> ShippingQuote:
    return quote_from_settings(subtotal, get_settings_map(db, SHIPPING_KEYS))
