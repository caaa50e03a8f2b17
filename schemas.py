"""
Database Schemas for the Affiliate Product Showcase

Each record model maps to a MongoDB collection (Product -> "products",
Category -> "categories", Banner -> "banners", Analytics -> "analytics",
AdminSettings -> "admin_settings"). Field names here are the application's
names; database.py translates them to the store's names.
"""
from pydantic import BaseModel, Field
from typing import Optional, List

# -------------------------------- Catalog ---------------------------------
class Product(BaseModel):
    id: Optional[str] = Field(None, description="Store id as string")
    name: str = Field(..., description="Product name")
    image_url: str = Field("", description="Product image URL")
    mrp: float = Field(0, description="List price")
    selling_price: float = Field(0, description="Actual price")
    category: str = Field("", description="Category name")
    subcategory: str = Field("", description="Subcategory name within the category")
    code: str = Field("", description="Human readable product code")
    affiliate_url: str = Field("", description="Affiliate destination URL")
    clicks: int = Field(0, ge=0, description="Click counter")

class Category(BaseModel):
    id: Optional[str] = Field(None, description="Store id as string")
    name: str = Field(..., description="Category name")
    subcategories: List[str] = Field(default_factory=list, description="Ordered subcategory names")

class Banner(BaseModel):
    id: Optional[str] = Field(None, description="Store id as string")
    image_url: str = Field("", description="Banner image URL")
    affiliate_url: str = Field("", description="Affiliate destination URL")
    title: str = Field("", description="Banner title")
    is_active: bool = Field(True, description="Shown in the storefront carousel")

# ----------------------------- Admin & Tracking ----------------------------
class AdminSettings(BaseModel):
    secret_code: str = Field("123456", description="Shared admin unlock code")
    session_active: bool = Field(False, description="Informational only")
    session_expiry: int = Field(0, description="Informational only, epoch ms")

class Analytics(BaseModel):
    id: Optional[str] = Field(None, description="Store id as string")
    product_id: str = Field(..., description="Tracked product id")
    product_name: str = Field("", description="Product name at first click")
    clicks: int = Field(0, ge=0, description="Cumulative clicks")
    last_clicked: int = Field(0, description="Epoch milliseconds of the last click")

# ------------------------------ Request bodies -----------------------------
class ProductIn(BaseModel):
    name: str = ""
    image_url: str = ""
    mrp: float = 0
    selling_price: float = 0
    category: str = ""
    subcategory: str = ""
    code: str = ""
    affiliate_url: str = ""

class CategoryIn(BaseModel):
    name: str = "New Category"
    subcategories: List[str] = Field(default_factory=lambda: ["New Subcategory"])

class CategoryRename(BaseModel):
    name: str

class SubcategoryIn(BaseModel):
    name: str

class SubcategoryRename(BaseModel):
    new_name: str

class BannerUpdate(BaseModel):
    image_url: Optional[str] = None
    affiliate_url: Optional[str] = None
    title: Optional[str] = None
    is_active: Optional[bool] = None

class SecretCodeUpdate(BaseModel):
    secret_code: str

class UnlockRequest(BaseModel):
    code: str

# --------------------------------- Responses -------------------------------
class ProductView(Product):
    discount: float = Field(0, description="Percent off the list price")

class UnlockResponse(BaseModel):
    token: str

class ClickResponse(BaseModel):
    affiliate_url: str
    tracked: bool

class CarouselView(BaseModel):
    banners: List[Banner]
    index: int
    show_controls: bool
    empty: bool

class AnalyticsSummary(BaseModel):
    total_products: int
    total_clicks: int
    active_banners: int = 0
    records: List[Analytics]

class Dashboard(BaseModel):
    products: List[Product]
    categories: List[Category]
    banners: List[Banner]
    analytics: List[Analytics]
    settings: AdminSettings
