import re

import pytest

from product_utils import _base36, calculate_discount, filter_products, generate_product_code, validate_url
from schemas import Product


@pytest.mark.parametrize("mrp,price,expected", [
    (9999, 6999, 30.0),
    (3, 2, 33.33),
    (8, 7, 12.5),
    (200, 199.99, 0.01),
    (100, 100, 0),
    (0, 50, 0),
    (-10, 5, 0),
])
def test_calculate_discount(mrp, price, expected):
    assert calculate_discount(mrp, price) == expected


def test_selling_above_mrp_gives_negative_discount():
    assert calculate_discount(100, 120) == -20.0


def test_base36():
    assert _base36(0) == "0"
    assert _base36(35) == "Z"
    assert _base36(36) == "10"
    assert _base36(1_700_000_000_000) == "LOYW3V28"


def test_generate_product_code():
    code = generate_product_code(now_ms=36)
    assert re.match(r"^PROD-10-[0-9A-Z]{4}$", code)
    assert re.match(r"^PROD-[0-9A-Z]+-[0-9A-Z]{4}$", generate_product_code())


@pytest.mark.parametrize("url,ok", [
    ("https://example.com/item", True),
    ("http://localhost:8000", True),
    ("mailto:deals@example.com", True),
    ("example.com", False),
    ("", False),
    ("not a url", False),
])
def test_validate_url(url, ok):
    assert validate_url(url) is ok


@pytest.fixture
def products():
    return [
        Product(id="1", name="Wireless Headphones", code="PROD-0001", category="Electronics", subcategory="Headphones"),
        Product(id="2", name="Smart Watch", code="PROD-0002", category="Electronics", subcategory="Smart Watches"),
        Product(id="3", name="Leather Jacket", code="JKT-7", category="Fashion", subcategory="Men's Clothing"),
    ]


def test_filter_matches_name_or_code_case_insensitively(products):
    assert [p.id for p in filter_products(products, "WATCH")] == ["2"]
    assert [p.id for p in filter_products(products, "jkt")] == ["3"]
    assert [p.id for p in filter_products(products, "prod-")] == ["1", "2"]


def test_filter_by_category_and_subcategory(products):
    assert [p.id for p in filter_products(products, category="Electronics")] == ["1", "2"]
    assert [p.id for p in filter_products(products, category="Electronics", subcategory="Headphones")] == ["1"]
    assert filter_products(products, "jacket", category="Electronics") == []


def test_empty_filters_match_everything(products):
    assert len(filter_products(products)) == 3
