# candleshop/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pathlib import Path

load_dotenv()

from candleshop.config import settings
from candleshop.database import init_db

# Router imports
from candleshop.routes.auth import router as auth_router
from candleshop.routes.admin import router as admin_router
from candleshop.routes.logs import router as logs_router
from candleshop.routes.cart import router as cart_router
from candleshop.routes.categories import router as categories_router
from candleshop.routes.orders import router as orders_router
from candleshop.routes.pages import router as pages_router
from candleshop.routes.products import router as products_router
from candleshop.routes.settings import router as settings_router
from candleshop.routes.variants import scents_router, colors_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialization
init_db()

app = FastAPI(title="Candle Shop API", version="1.0.0")

# Product images; the directory is created on first start
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# CORS: the storefront dev server plus the configured frontend
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Anything not turned into an HTTPException still answers with a JSON message
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(scents_router)
app.include_router(colors_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(settings_router)
app.include_router(pages_router)

@app.get("/")
def read_root():
    return {"message": "Candle Shop API is running"}
