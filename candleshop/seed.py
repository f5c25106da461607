# candleshop/seed.py
# Fills an empty database with the admin account, starter catalog,
# shipping settings and placeholder pages. Safe to run more than once.
import logging
import os
from decimal import Decimal

from sqlalchemy.orm import Session

from candleshop.database import SessionLocal, init_db
from candleshop.models.content import Page, Setting
from candleshop.models.product import Category, Color, Product, ProductColor, ProductScent, Scent
from candleshop.models.users import User
from candleshop.utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "shippingCost": "5",
    "freeShippingThreshold": "50",
    "store_name": "Kerzenwelt",
    "store_description": "Handmade scented and decorative candles",
}

DEFAULT_CATEGORIES = [
    ("Scented candles", "A collection of handmade scented candles"),
    ("Decorative candles", "Unique decorative candles for your home"),
    ("Special occasions", "Candles for weddings, birthdays and celebrations"),
]

DEFAULT_SCENTS = ["Lavender", "Vanilla", "Sandalwood", "Citrus"]
DEFAULT_COLORS = [("White", "#FFFFFF"), ("Ivory", "#FFFFF0"), ("Burgundy", "#800020")]

DEFAULT_PAGES = {
    "about": ("About us", "We pour every candle by hand in small batches."),
    "contact": ("Contact", "Write to us any time, we answer within two working days."),
    "blog": ("Blog", "News from the workshop."),
    "shipping-returns": ("Shipping & returns", "Orders ship within 3 working days."),
}


def create_default_admin(db: Session):
    if db.query(User).filter(User.is_admin.is_(True)).first():
        return
    password = os.getenv("ADMIN_PASSWORD", "admin123")
    db.add(User(
        username="admin", email="admin@example.com", first_name="Admin", last_name="User",
        password_hash=get_password_hash(password), is_admin=True,
    ))
    db.commit()
    logger.info("Admin user created")


def create_default_catalog(db: Session):
    if db.query(Category).count() == 0:
        db.add_all([Category(name=n, description=d) for n, d in DEFAULT_CATEGORIES])
        db.commit()
    if db.query(Scent).count() == 0:
        db.add_all([Scent(name=n) for n in DEFAULT_SCENTS])
        db.commit()
    if db.query(Color).count() == 0:
        db.add_all([Color(name=n, hex_value=h) for n, h in DEFAULT_COLORS])
        db.commit()

    if db.query(Product).count() > 0:
        return
    scented, decorative, _ = db.query(Category).order_by(Category.id).limit(3).all()
    lavender = db.query(Scent).filter(Scent.name == "Lavender").first()
    vanilla = db.query(Scent).filter(Scent.name == "Vanilla").first()
    white = db.query(Color).filter(Color.name == "White").first()

    jar = Product(name="Lavender jar candle", description="Soy wax candle in a glass jar",
                  price=Decimal("14.90"), stock=25, category=scented, burn_time="40h", featured=True)
    pillar = Product(name="Pillar candle", description="Classic hand-dipped pillar",
                     price=Decimal("9.50"), stock=40, category=decorative, burn_time="30h",
                     has_color_options=True)
    db.add_all([jar, pillar])
    db.flush()
    db.add_all([
        ProductScent(product_id=jar.id, scent_id=lavender.id),
        ProductScent(product_id=jar.id, scent_id=vanilla.id),
        ProductColor(product_id=pillar.id, color_id=white.id),
    ])
    db.commit()
    logger.info("Default catalog created")


def create_default_content(db: Session):
    existing = {s.key for s in db.query(Setting).all()}
    for key, value in DEFAULT_SETTINGS.items():
        if key not in existing:
            db.add(Setting(key=key, value=value))
    pages = {p.type for p in db.query(Page).all()}
    for page_type, (title, content) in DEFAULT_PAGES.items():
        if page_type not in pages:
            db.add(Page(type=page_type, title=title, content=content))
    db.commit()


def seed(db: Session):
    create_default_admin(db)
    create_default_catalog(db)
    create_default_content(db)


def main():
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
    logger.info("Database initialization finished")


if __name__ == "__main__":
    main()
