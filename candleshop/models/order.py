# candleshop/models/order.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from candleshop.database import Base

ORDER_STATUSES = ("pending", "processing", "shipped", "completed", "cancelled")
PAYMENT_METHODS = ("cash", "bank_transfer", "paypal", "credit_card")

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="pending", index=True)

    # Amounts frozen at checkout
    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")

    # Shipping address details
    shipping_address = Column(String, nullable=True)
    shipping_city = Column(String, nullable=True)
    shipping_postal_code = Column(String, nullable=True)
    shipping_country = Column(String, nullable=True)
    customer_note = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    user = relationship("User")

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    # Snapshot of the product and chosen variants at purchase time
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    scent_id = Column(Integer, nullable=True)
    scent_name = Column(String, nullable=True)
    color_id = Column(Integer, nullable=True)
    color_name = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
