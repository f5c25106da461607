from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

OrderStatus = Literal["pending", "processing", "shipped", "completed", "cancelled"]
PaymentMethod = Literal["cash", "bank_transfer", "paypal", "credit_card"]


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: Decimal
    scent_id: Optional[int] = None
    scent_name: Optional[str] = None
    color_id: Optional[int] = None
    color_name: Optional[str] = None
    line_total: Decimal


# Input schema for checkout; the items come from the server side cart
class OrderCreatePayload(BaseModel):
    payment_method: PaymentMethod
    shipping_address: str = Field(min_length=3)
    shipping_city: str = Field(min_length=2)
    shipping_postal_code: str = Field(min_length=2)
    shipping_country: str = Field(min_length=2)
    customer_note: Optional[str] = None
    # Subtotal the client displayed; checkout is refused when it is stale
    expected_subtotal: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    payment_method: str
    payment_status: str
    shipping_address: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_country: Optional[str] = None
    customer_note: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus
