# candleshop/schemas/content.py
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SettingCreate(BaseModel):
    key: str = Field(min_length=1)
    value: str

class SettingValue(BaseModel):
    value: str = Field(min_length=1)

class SettingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    key: str
    value: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Store identity shown in the footer and on invoices
class GeneralSettings(BaseModel):
    store_name: str = Field(min_length=3)
    store_description: str = Field(min_length=10)
    store_owner: str = Field(min_length=2)
    store_legal_name: str = Field(min_length=3)
    store_tax_id: str = Field(min_length=3)

class ContactSettings(BaseModel):
    address: str = Field(min_length=3)
    city: str = Field(min_length=2)
    postalCode: str = Field(min_length=2)
    phone: str = Field(min_length=5)
    email: EmailStr
    workingHours: str = Field(min_length=3)

# Values are kept as strings like every other setting
class ShippingSettings(BaseModel):
    shippingCost: str = Field(min_length=1)
    freeShippingThreshold: str = Field(min_length=1)


class ShippingQuoteOut(BaseModel):
    subtotal: Decimal
    flat_rate: Decimal
    free_threshold: Decimal
    shipping: Decimal
    total: Decimal
    is_free: bool
    remaining: Decimal
    progress: float


class PageIn(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)

class PageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    content: str
    updated_at: Optional[datetime] = None
