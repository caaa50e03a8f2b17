"""
Storefront helpers: discount, product codes, URL checks and search.
"""
import random
import string
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from schemas import Product

BASE36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(BASE36[rem])
    return "".join(reversed(out))


def generate_product_code(now_ms: Optional[int] = None) -> str:
    """
    PROD-<epoch ms in base36>-<4 random base36 chars>, upper case.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(BASE36, k=4))
    return f"PROD-{_base36(now_ms)}-{suffix}"


def calculate_discount(mrp: float, selling_price: float) -> float:
    if mrp <= 0:
        return 0
    discount = (Decimal(str(mrp)) - Decimal(str(selling_price))) / Decimal(str(mrp)) * 100
    return float(discount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def validate_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if not parsed.scheme:
        return False
    return bool(parsed.netloc or parsed.path)


def filter_products(products: Iterable[Product], query: str = "", category: str = "", subcategory: str = "") -> List[Product]:
    q = (query or "").lower()
    result = []
    for p in products:
        matches_search = q in p.name.lower() or q in p.code.lower()
        matches_category = not category or p.category == category
        matches_subcategory = not subcategory or p.subcategory == subcategory
        if matches_search and matches_category and matches_subcategory:
            result.append(p)
    return result
