# backend/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

from config import settings
from database import SessionLocal, init_db
from services.errors import StoreError
from services.hub import NotificationHub
from services.push import build_push_sender
from utils.uploads import upload_root

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Router imports
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.shop import router as shop_router
from routes.products import router as products_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router, admin_router as admin_orders_router
from routes.coupons import router as coupons_router, admin_router as admin_coupons_router
from routes.wholesale import router as wholesale_router, admin_router as admin_wholesale_router
from routes.notifications import router as notifications_router, admin_router as admin_notifications_router
from routes.addresses import router as addresses_router
from routes.favorites import router as favorites_router
from routes.banners import router as banners_router, admin_router as admin_banners_router
from routes.stats import router as stats_router
from routes.reports import router as reports_router

# Initialisation
init_db()

app = FastAPI(title="Pharmacy Store API", version="1.0.0")

# One notification hub per process, shared by every route through get_hub
app.state.hub = NotificationHub(
    SessionLocal,
    push_sender=build_push_sender(),
    queue_size=settings.SSE_QUEUE_SIZE,
    heartbeat=settings.SSE_HEARTBEAT_SECONDS,
)

# Uploads - make sure the directory exists
app.mount("/uploads", StaticFiles(directory=str(upload_root())), name="uploads")

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Business-rule failures from the service layer
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(shop_router)
app.include_router(products_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(admin_orders_router)
app.include_router(coupons_router)
app.include_router(admin_coupons_router)
app.include_router(wholesale_router)
app.include_router(admin_wholesale_router)
app.include_router(notifications_router)
app.include_router(admin_notifications_router)
app.include_router(addresses_router)
app.include_router(favorites_router)
app.include_router(banners_router)
app.include_router(admin_banners_router)
app.include_router(stats_router)
app.include_router(reports_router)

@app.get("/")
def read_root():
    return {"message": "Pharmacy Store API is running"}

@app.get("/health")
def health():
    return {"status": "ok", "live_connections": app.state.hub.connection_count()}
