# candleshop/models/product.py
from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, ForeignKey, DateTime,
    CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from candleshop.database import Base


# Product category shown in the catalog navigation
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    products = relationship("Product", back_populates="category")


# Model Product
# A single candle offered in the shop. Price is stored as a fixed point
# decimal, stock is the number of units available for new carts and orders.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    image_url = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    # Free text attributes kept on the product itself
    scent = Column(String, nullable=True)
    color = Column(String, nullable=True)
    burn_time = Column(String, nullable=True)

    featured = Column(Boolean, nullable=False, default=False)
    # When false the linked colors are informational and no choice is required
    has_color_options = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", back_populates="products")
    scent_links = relationship("ProductScent", cascade="all, delete-orphan", back_populates="product")
    color_links = relationship("ProductColor", cascade="all, delete-orphan", back_populates="product")

    @property
    def scents(self):
        return [link.scent for link in self.scent_links if link.scent is not None]

    @property
    def colors(self):
        return [link.color for link in self.color_links if link.color is not None]

    @property
    def requires_scent(self) -> bool:
        return bool(self.scent_links)

    @property
    def requires_color(self) -> bool:
        return bool(self.has_color_options and self.color_links)


# Scent variant (e.g. lavender, vanilla)
class Scent(Base):
    __tablename__ = "scents"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)


# Color variant with its display value
class Color(Base):
    __tablename__ = "colors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    hex_value = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


# Scents a product can be ordered in
class ProductScent(Base):
    __tablename__ = "product_scents"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    scent_id = Column(Integer, ForeignKey("scents.id", ondelete="CASCADE"), nullable=False, index=True)

    product = relationship("Product", back_populates="scent_links")
    scent = relationship("Scent", lazy="joined")

    __table_args__ = (
        UniqueConstraint("product_id", "scent_id", name="uq_product_scent"),
    )


# Colors a product can be ordered in
class ProductColor(Base):
    __tablename__ = "product_colors"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    color_id = Column(Integer, ForeignKey("colors.id", ondelete="CASCADE"), nullable=False, index=True)

    product = relationship("Product", back_populates="color_links")
    color = relationship("Color", lazy="joined")

    __table_args__ = (
        UniqueConstraint("product_id", "color_id", name="uq_product_color"),
    )


# Customer review of a product
class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, CheckConstraint("rating >= 1 AND rating <= 5"), nullable=False)
    comment = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
