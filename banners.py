"""
Promotional banners: admin edits and the storefront carousel.
"""
import logging
from typing import Any, Dict, List, Optional

from admin_store import AdminStore
from errors import NotFoundError, StoreError
from schemas import Banner, CarouselView

logger = logging.getLogger(__name__)


class BannerCarousel:
    """
    Slide position over the banners that were active when it was built.

    Admin edits made afterwards are not seen until a new carousel is built.
    """

    def __init__(self, banners: List[Banner]):
        self.banners = [b for b in banners if b.is_active]
        self.index = 0

    def __len__(self):
        return len(self.banners)

    @property
    def is_empty(self) -> bool:
        return not self.banners

    @property
    def show_controls(self) -> bool:
        return len(self.banners) > 1

    @property
    def current(self) -> Optional[Banner]:
        if self.is_empty:
            return None
        return self.banners[self.index]

    def next(self) -> int:
        if not self.is_empty:
            self.index = (self.index + 1) % len(self.banners)
        return self.index

    def prev(self) -> int:
        if not self.is_empty:
            self.index = (self.index - 1 + len(self.banners)) % len(self.banners)
        return self.index

    def goto_slide(self, n: int) -> int:
        if not 0 <= n < len(self.banners):
            raise IndexError(f"No slide {n}")
        self.index = n
        return self.index

    def click(self) -> Optional[str]:
        """Affiliate URL of the shown banner. Does not move the carousel."""
        banner = self.current
        return banner.affiliate_url if banner else None

    def view(self) -> CarouselView:
        return CarouselView(
            banners=self.banners,
            index=self.index,
            show_controls=self.show_controls,
            empty=self.is_empty,
        )


class BannerService:
    def __init__(self, gateway, store: AdminStore):
        self.gateway = gateway
        self.store = store

    def _banner(self, banner_id: str) -> Banner:
        banner = self.store.find_banner(banner_id)
        if banner is None:
            raise NotFoundError("Banner not found")
        return banner

    def add_banner(self) -> Banner:
        record = self.gateway.insert("banners", {
            "image_url": "",
            "affiliate_url": "",
            "title": "New Banner",
            "is_active": True,
        })
        if record is None:
            raise StoreError("Failed to add banner")
        banner = Banner(**record)
        self.store.banners.insert(0, banner)
        return banner

    def update_banner(self, banner_id: str, fields: Dict[str, Any]) -> Banner:
        banner = self._banner(banner_id)
        updates = {k: v for k, v in fields.items() if v is not None}
        if not updates:
            return banner
        if not self.gateway.update("banners", banner_id, updates):
            raise StoreError("Failed to update banner")
        updated = banner.model_copy(update=updates)
        self.store.replace_banner(updated)
        return updated

    def toggle_active(self, banner_id: str) -> Banner:
        banner = self._banner(banner_id)
        return self.update_banner(banner_id, {"is_active": not banner.is_active})

    def delete_banner(self, banner_id: str) -> None:
        self._banner(banner_id)
        if not self.gateway.delete("banners", banner_id):
            raise StoreError("Failed to delete banner")
        self.store.banners = [b for b in self.store.banners if b.id != banner_id]
        logger.info("Deleted banner %s", banner_id)
