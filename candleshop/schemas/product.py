# candleshop/schemas/product.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- Categories ----
class CategoryBase(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None

class CategoryCreate(CategoryBase):
    pass

class CategoryOut(CategoryBase):
    id: int


# ---- Scents / Colors ----
class ScentBase(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    active: bool = True

class ScentCreate(ScentBase):
    pass

class ScentOut(ScentBase):
    id: int

class ColorBase(ORMBase):
    name: str = Field(min_length=1)
    hex_value: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")
    active: bool = True

class ColorCreate(ColorBase):
    pass

class ColorOut(ColorBase):
    id: int

class ProductScentLink(BaseModel):
    scent_id: int

class ProductColorLink(BaseModel):
    color_id: int


# ---- Products ----
# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    description: str = ""
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    scent: Optional[str] = None
    color: Optional[str] = None
    burn_time: Optional[str] = None
    featured: bool = False
    has_color_options: bool = True


# Schema for creating or fully replacing a product
class ProductCreate(ProductBase):
    pass


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    created_at: Optional[datetime] = None
    requires_scent: bool = False
    requires_color: bool = False


# ---- Reviews ----
class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None

class ReviewOut(ORMBase):
    id: int
    user_id: int
    product_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    username: Optional[str] = None
