# candleshop/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from candleshop.database import Base

# A single line (product + variant + quantity) in the user's cart
class CartItem(Base):
    __tablename__ = "cart_items" # Table name

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False) # Owner of the cart
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)

    # Optional variant selection, required when the product defines variants
    scent_id = Column(Integer, ForeignKey("scents.id", ondelete="SET NULL"), nullable=True)
    color_id = Column(Integer, ForeignKey("colors.id", ondelete="SET NULL"), nullable=True)

    product = relationship("Product") # Relationship to Product
    scent = relationship("Scent")
    color = relationship("Color")
