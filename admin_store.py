"""
In-memory mirror of everything the admin dashboard shows.

The mirror is loaded from the gateway and only changed by the services after
the store has confirmed a write. Referential guards (delete blocked while
products use a name) are computed against these loaded collections.
"""
import logging
from typing import List, Optional

from schemas import Product, Category, Banner, Analytics, AdminSettings, Dashboard

logger = logging.getLogger(__name__)


class AdminStore:
    def __init__(
        self,
        products: Optional[List[Product]] = None,
        categories: Optional[List[Category]] = None,
        banners: Optional[List[Banner]] = None,
        analytics: Optional[List[Analytics]] = None,
        settings: Optional[AdminSettings] = None,
    ):
        self.products = list(products or [])
        self.categories = list(categories or [])
        self.banners = list(banners or [])
        self.analytics = list(analytics or [])
        self.settings = settings or AdminSettings()

    @classmethod
    def load(cls, gateway) -> "AdminStore":
        store = cls(
            products=[Product(**r) for r in gateway.list("products")],
            categories=[Category(**r) for r in gateway.list("categories")],
            banners=[Banner(**r) for r in gateway.list("banners")],
            analytics=[Analytics(**r) for r in gateway.list("analytics")],
            settings=AdminSettings(**gateway.get_admin_settings()),
        )
        logger.debug(
            "Loaded admin data: %d products, %d categories, %d banners",
            len(store.products), len(store.categories), len(store.banners),
        )
        return store

    # lookups
    def find_product(self, id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == id), None)

    def find_category(self, id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == id), None)

    def find_category_by_name(self, name: str) -> Optional[Category]:
        return next((c for c in self.categories if c.name == name), None)

    def find_banner(self, id: str) -> Optional[Banner]:
        return next((b for b in self.banners if b.id == id), None)

    # references (products point at categories by name)
    def products_in_category(self, category_name: str) -> List[Product]:
        return [p for p in self.products if p.category == category_name]

    def products_in_subcategory(self, category_name: str, subcategory: str) -> List[Product]:
        return [p for p in self.products if p.category == category_name and p.subcategory == subcategory]

    # reconciliation
    def replace_product(self, product: Product) -> None:
        self.products = [product if p.id == product.id else p for p in self.products]

    def replace_category(self, category: Category) -> None:
        self.categories = [category if c.id == category.id else c for c in self.categories]

    def replace_banner(self, banner: Banner) -> None:
        self.banners = [banner if b.id == banner.id else b for b in self.banners]

    def snapshot(self) -> Dashboard:
        return Dashboard(
            products=self.products,
            categories=self.categories,
            banners=self.banners,
            analytics=self.analytics,
            settings=self.settings,
        )
