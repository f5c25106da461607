# candleshop/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from candleshop.config import settings

# 1. Take the URL from the environment (.env / hosting) or fall back to local SQLite
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosting providers still hand out postgres:// which SQLAlchemy no longer accepts
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver specific options
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Import models so every table is registered on Base.metadata
    import candleshop.models.users  # noqa: F401
    import candleshop.models.product  # noqa: F401
    import candleshop.models.cart  # noqa: F401
    import candleshop.models.order  # noqa: F401
    import candleshop.models.content  # noqa: F401
    import candleshop.models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)
