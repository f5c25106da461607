from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = 1
    scent_id: Optional[int] = None
    color_id: Optional[int] = None

# Request schema for updating cart item quantity
class CartUpdateItem(BaseModel):
    quantity: int

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    stock: int
    image_url: Optional[str] = None
    scent_id: Optional[int] = None
    scent_name: Optional[str] = None
    color_id: Optional[int] = None
    color_name: Optional[str] = None
    line_total: Decimal

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    free_shipping_remaining: Decimal = Field(default=Decimal("0.00"))
    free_shipping_progress: float = 0.0
