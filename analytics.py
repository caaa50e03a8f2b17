"""
Per-product click counters.

`track_click` is a plain read-then-write against the store: two clicks on the
same product from different sessions can both read the same count and one
increment is lost. That is accepted; the counter is a rough popularity signal.
"""
import logging
import time
from typing import Callable, Iterable, List, Optional

from schemas import Analytics, AnalyticsSummary, Banner, Product

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class ClickTracker:
    def __init__(self, gateway, clock: Callable[[], int] = epoch_ms):
        self.gateway = gateway
        self.clock = clock

    def track_click(self, product_id: str, product_name: str) -> bool:
        """
        Count one click. Never raises: a failure is logged and False returned,
        so the caller can go on to the affiliate URL regardless.
        """
        try:
            now = self.clock()
            found, existing = self.gateway.lookup("analytics", {"product_id": product_id})
            if not found:
                ok = False
            elif existing:
                ok = self.gateway.update(
                    "analytics", existing["id"],
                    {"clicks": existing.get("clicks", 0) + 1, "last_clicked": now},
                )
            else:
                ok = self.gateway.insert("analytics", {
                    "product_id": product_id,
                    "product_name": product_name,
                    "clicks": 1,
                    "last_clicked": now,
                }) is not None
        except Exception:
            logger.exception("Failed to track product click for %s", product_id)
            return False
        if not ok:
            logger.error("Failed to track product click for %s", product_id)
        return ok

    def get(self, product_id: str) -> Optional[Analytics]:
        record = self.gateway.find_one("analytics", {"product_id": product_id})
        return Analytics(**record) if record else None


def summarize(products: List[Product], analytics: List[Analytics], banners: Iterable[Banner] = ()) -> AnalyticsSummary:
    records = sorted(analytics, key=lambda a: a.clicks, reverse=True)
    return AnalyticsSummary(
        total_products=len(products),
        total_clicks=sum(a.clicks for a in analytics),
        active_banners=sum(1 for b in banners if b.is_active),
        records=records,
    )
