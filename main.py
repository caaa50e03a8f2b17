import os
import time
import hmac
import json
import base64
import logging
from contextlib import asynccontextmanager
from hashlib import sha256
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admin_store import AdminStore
from analytics import ClickTracker, summarize
from banners import BannerCarousel, BannerService
from catalog import CatalogService
from database import db, Gateway
from errors import CatalogError, InUseError, CascadeError
from product_utils import calculate_discount, filter_products
from schemas import (
    Product, Category, Banner, AdminSettings, ProductIn, CategoryIn, CategoryRename,
    SubcategoryIn, SubcategoryRename, BannerUpdate, SecretCodeUpdate, UnlockRequest,
    ProductView, UnlockResponse, ClickResponse, CarouselView, AnalyticsSummary, Dashboard,
)
from unlock import MSG_CODE_FORMAT, MSG_CODE_INVALID, SettingsService, is_code_format, verify_code


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


logging.basicConfig(
    level=log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

gateway = Gateway(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway.initialize_defaults()
    yield


app = FastAPI(title="Affiliate Showcase API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    body = {"detail": exc.message}
    if isinstance(exc, InUseError):
        body["count"] = exc.count
    if isinstance(exc, CascadeError):
        body["renamed"] = exc.renamed
        body["failed"] = exc.failed
    return JSONResponse(status_code=exc.status_code, content=body)


# -----------------------------
# Dependencies
# -----------------------------

def get_gateway() -> Gateway:
    return gateway


def get_admin_store(gw: Gateway = Depends(get_gateway)) -> AdminStore:
    return AdminStore.load(gw)


def get_catalog(gw: Gateway = Depends(get_gateway), store: AdminStore = Depends(get_admin_store)) -> CatalogService:
    return CatalogService(gw, store)


def get_banner_service(gw: Gateway = Depends(get_gateway), store: AdminStore = Depends(get_admin_store)) -> BannerService:
    return BannerService(gw, store)


def get_settings_service(gw: Gateway = Depends(get_gateway), store: AdminStore = Depends(get_admin_store)) -> SettingsService:
    return SettingsService(gw, store)


# -----------------------------
# Tokens
# -----------------------------

def admin_secret() -> str:
    return os.getenv("ADMIN_SECRET", "change-me")


def sign_token(payload: dict, secret: str) -> str:
    data = json.dumps(payload, separators=(",", ":")).encode()
    sig = hmac.new(secret.encode(), data, sha256).digest()
    return base64.urlsafe_b64encode(data).decode().rstrip("=") + "." + base64.urlsafe_b64encode(sig).decode().rstrip("=")


def verify_token(token: str, secret: str) -> dict:
    try:
        data_b64, sig_b64 = token.split(".")
        pad = lambda s: s + "=" * (-len(s) % 4)
        data = base64.urlsafe_b64decode(pad(data_b64))
        sig = base64.urlsafe_b64decode(pad(sig_b64))
        expected = hmac.new(secret.encode(), data, sha256).digest()
        if not hmac.compare_digest(sig, expected):
            raise ValueError("Invalid signature")
        payload = json.loads(data.decode())
        if payload.get("exp") and time.time() > payload["exp"]:
            raise ValueError("Token expired")
        return payload
    except (ValueError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e


def get_current_admin(authorization: Optional[str] = Header(default=None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    payload = verify_token(token, admin_secret())
    if payload.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return payload


# -----------------------------
# Public endpoints
# -----------------------------
@app.get("/")
def root():
    return {"message": "Affiliate Showcase API"}


@app.get("/products", response_model=List[ProductView])
def list_products(q: str = "", category: str = "", subcategory: str = "", gw: Gateway = Depends(get_gateway)):
    products = [Product(**r) for r in gw.list("products")]
    return [
        ProductView(**p.model_dump(), discount=calculate_discount(p.mrp, p.selling_price))
        for p in filter_products(products, q, category, subcategory)
    ]


@app.get("/categories", response_model=List[Category])
def list_categories(gw: Gateway = Depends(get_gateway)):
    return [Category(**r) for r in gw.list("categories")]


@app.get("/banners", response_model=CarouselView)
def list_banners(gw: Gateway = Depends(get_gateway)):
    return BannerCarousel([Banner(**r) for r in gw.list("banners")]).view()


@app.post("/products/{product_id}/click", response_model=ClickResponse)
def click_product(product_id: str, gw: Gateway = Depends(get_gateway)):
    record = gw.get("products", product_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Product not found")
    product = Product(**record)
    tracked = ClickTracker(gw).track_click(product.id, product.name)
    return ClickResponse(affiliate_url=product.affiliate_url, tracked=tracked)


@app.post("/admin/unlock", response_model=UnlockResponse)
def unlock(req: UnlockRequest, gw: Gateway = Depends(get_gateway)):
    if not is_code_format(req.code):
        raise HTTPException(status_code=400, detail=MSG_CODE_FORMAT)
    settings = AdminSettings(**gw.get_admin_settings())
    if not verify_code(req.code, settings.secret_code):
        logger.warning("Rejected admin unlock attempt")
        raise HTTPException(status_code=401, detail=MSG_CODE_INVALID)
    token = sign_token({"sub": "admin", "role": "admin", "iat": int(time.time())}, admin_secret())
    return UnlockResponse(token=token)


# -----------------------------
# Admin endpoints
# -----------------------------
@app.get("/admin/dashboard", response_model=Dashboard, dependencies=[Depends(get_current_admin)])
def dashboard(store: AdminStore = Depends(get_admin_store)):
    return store.snapshot()


@app.post("/admin/products", response_model=Product, dependencies=[Depends(get_current_admin)])
def create_product(payload: ProductIn, catalog: CatalogService = Depends(get_catalog)):
    return catalog.save_product(payload)


@app.put("/admin/products/{product_id}", response_model=Product, dependencies=[Depends(get_current_admin)])
def update_product(product_id: str, payload: ProductIn, catalog: CatalogService = Depends(get_catalog)):
    return catalog.save_product(payload, product_id)


@app.delete("/admin/products/{product_id}", dependencies=[Depends(get_current_admin)])
def delete_product(product_id: str, catalog: CatalogService = Depends(get_catalog)):
    catalog.delete_product(product_id)
    return {"success": True}


@app.post("/admin/categories", response_model=Category, dependencies=[Depends(get_current_admin)])
def create_category(payload: Optional[CategoryIn] = None, catalog: CatalogService = Depends(get_catalog)):
    payload = payload or CategoryIn()
    return catalog.add_category(payload.name, payload.subcategories)


@app.patch("/admin/categories/{category_id}", response_model=Category, dependencies=[Depends(get_current_admin)])
def rename_category(category_id: str, payload: CategoryRename, catalog: CatalogService = Depends(get_catalog)):
    return catalog.rename_category(category_id, payload.name)


@app.delete("/admin/categories/{category_id}", dependencies=[Depends(get_current_admin)])
def delete_category(category_id: str, catalog: CatalogService = Depends(get_catalog)):
    catalog.delete_category(category_id)
    return {"success": True}


@app.post("/admin/categories/{category_id}/subcategories", response_model=Category, dependencies=[Depends(get_current_admin)])
def add_subcategory(category_id: str, payload: SubcategoryIn, catalog: CatalogService = Depends(get_catalog)):
    return catalog.add_subcategory(category_id, payload.name)


@app.put("/admin/categories/{category_id}/subcategories/{name:path}", response_model=Category, dependencies=[Depends(get_current_admin)])
def rename_subcategory(category_id: str, name: str, payload: SubcategoryRename, catalog: CatalogService = Depends(get_catalog)):
    return catalog.rename_subcategory(category_id, name, payload.new_name)


@app.delete("/admin/categories/{category_id}/subcategories/{name:path}", response_model=Category, dependencies=[Depends(get_current_admin)])
def delete_subcategory(category_id: str, name: str, catalog: CatalogService = Depends(get_catalog)):
    return catalog.delete_subcategory(category_id, name)


@app.post("/admin/banners", response_model=Banner, dependencies=[Depends(get_current_admin)])
def create_banner(banners: BannerService = Depends(get_banner_service)):
    return banners.add_banner()


@app.patch("/admin/banners/{banner_id}", response_model=Banner, dependencies=[Depends(get_current_admin)])
def update_banner(banner_id: str, payload: BannerUpdate, banners: BannerService = Depends(get_banner_service)):
    return banners.update_banner(banner_id, payload.model_dump(exclude_none=True))


@app.post("/admin/banners/{banner_id}/toggle", response_model=Banner, dependencies=[Depends(get_current_admin)])
def toggle_banner(banner_id: str, banners: BannerService = Depends(get_banner_service)):
    return banners.toggle_active(banner_id)


@app.delete("/admin/banners/{banner_id}", dependencies=[Depends(get_current_admin)])
def delete_banner(banner_id: str, banners: BannerService = Depends(get_banner_service)):
    banners.delete_banner(banner_id)
    return {"success": True}


@app.get("/admin/analytics", response_model=AnalyticsSummary, dependencies=[Depends(get_current_admin)])
def analytics_summary(store: AdminStore = Depends(get_admin_store)):
    return summarize(store.products, store.analytics, store.banners)


@app.get("/admin/settings", response_model=AdminSettings, dependencies=[Depends(get_current_admin)])
def read_settings(store: AdminStore = Depends(get_admin_store)):
    return store.settings


@app.put("/admin/settings/secret-code", response_model=AdminSettings, dependencies=[Depends(get_current_admin)])
def update_secret_code(payload: SecretCodeUpdate, settings: SettingsService = Depends(get_settings_service)):
    settings.update_secret_code(payload.secret_code)
    return settings.store.settings


# Existing diagnostics
@app.get("/test")
def test_database(gw: Gateway = Depends(get_gateway)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "connection_status": "Not Connected",
        "collections": []
    }
    if gw.db is not None:
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        try:
            response["collections"] = gw.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
