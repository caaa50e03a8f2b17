from database import Gateway, DEFAULT_CATEGORIES, DEFAULT_SECRET_CODE, to_store, from_store


def test_to_store_uses_store_names_and_drops_unknown_fields():
    data = to_store("products", {"image_url": "x.png", "selling_price": 5, "affiliate_url": "u", "bogus": 1})
    assert data == {"imageurl": "x.png", "sellingprice": 5, "affiliateurl": "u"}


def test_from_store_hides_bookkeeping_fields(mongo):
    mongo["banners"].insert_one({"imageurl": "b.png", "isactive": False, "title": "T", "created_at": 1})
    doc = mongo["banners"].find_one({})
    record = from_store("banners", doc)
    assert record == {"image_url": "b.png", "is_active": False, "title": "T", "id": str(doc["_id"])}


def test_insert_stores_translated_fields(gateway, mongo, add_product):
    record = add_product("Phone", subcategory="Mobile Phones")
    raw = mongo["products"].find_one({"name": "Phone"})
    assert raw["imageurl"] == "https://img.example.com/p.png"
    assert raw["sellingprice"] == 800
    assert "image_url" not in raw
    assert "created_at" in raw
    assert record["image_url"] == "https://img.example.com/p.png"
    assert record["id"] == str(raw["_id"])


def test_list_orders_products_newest_first(gateway, add_product):
    add_product("First")
    add_product("Second")
    add_product("Third")
    assert [p["name"] for p in gateway.list("products")] == ["Third", "Second", "First"]


def test_list_orders_categories_by_name(gateway):
    gateway.insert("categories", {"name": "Books", "subcategories": []})
    names = [c["name"] for c in gateway.list("categories")]
    assert names == sorted(names)
    assert names[0] == "Books"


def test_list_orders_analytics_by_clicks(gateway):
    gateway.insert("analytics", {"product_id": "a", "product_name": "A", "clicks": 2, "last_clicked": 1})
    gateway.insert("analytics", {"product_id": "b", "product_name": "B", "clicks": 9, "last_clicked": 1})
    gateway.insert("analytics", {"product_id": "c", "product_name": "C", "clicks": 5, "last_clicked": 1})
    assert [a["product_id"] for a in gateway.list("analytics")] == ["b", "c", "a"]


def test_update_and_delete_report_success(gateway, add_product):
    record = add_product("Lamp")
    assert gateway.update("products", record["id"], {"name": "Desk Lamp"}) is True
    assert gateway.get("products", record["id"])["name"] == "Desk Lamp"
    assert gateway.delete("products", record["id"]) is True
    assert gateway.get("products", record["id"]) is None


def test_update_unknown_or_malformed_id_is_false(gateway):
    assert gateway.update("products", "5f0000000000000000000000", {"name": "x"}) is False
    assert gateway.update("products", "not-an-id", {"name": "x"}) is False
    assert gateway.delete("products", "not-an-id") is False
    assert gateway.get("products", "not-an-id") is None


def test_lookup_distinguishes_missing_from_failure(gateway, broken_gateway):
    assert gateway.lookup("analytics", {"product_id": "nope"}) == (True, None)
    assert broken_gateway.lookup("analytics", {"product_id": "nope"}) == (False, None)


def test_store_failures_never_raise(broken_gateway):
    assert broken_gateway.list("products") == []
    assert broken_gateway.insert("products", {"name": "x"}) is None
    assert broken_gateway.update("products", "5f0000000000000000000000", {"name": "x"}) is False
    assert broken_gateway.delete("products", "5f0000000000000000000000") is False
    assert broken_gateway.count("products") is None


def test_unconfigured_gateway_behaves_like_a_failing_store():
    gw = Gateway(None)
    assert gw.list("categories") == []
    assert gw.insert("categories", {"name": "x"}) is None
    assert gw.get_admin_settings()["secret_code"] == DEFAULT_SECRET_CODE


def test_seeding_is_idempotent(gateway):
    gateway.initialize_defaults()
    categories = gateway.list("categories")
    assert len(categories) == len(DEFAULT_CATEGORIES)
    assert gateway.count("admin_settings") == 1
    electronics = next(c for c in categories if c["name"] == "Electronics")
    assert electronics["subcategories"] == ["Mobile Phones", "Laptops", "Tablets", "Accessories"]


def test_seeding_skips_non_empty_category_table(mongo):
    gw = Gateway(mongo)
    gw.insert("categories", {"name": "Custom", "subcategories": ["One"]})
    gw.initialize_defaults()
    assert [c["name"] for c in gw.list("categories")] == ["Custom"]


def test_admin_settings_created_lazily(mongo):
    gw = Gateway(mongo)
    settings = gw.get_admin_settings()
    assert settings == {"secret_code": "123456", "session_active": False, "session_expiry": 0}
    assert mongo["admin_settings"].find_one({})["secretcode"] == "123456"


def test_update_admin_settings(gateway, mongo):
    assert gateway.update_admin_settings("987654") is True
    assert gateway.get_admin_settings()["secret_code"] == "987654"
    assert mongo["admin_settings"].count_documents({}) == 1


def test_update_admin_settings_inserts_when_missing(mongo):
    gw = Gateway(mongo)
    assert gw.update_admin_settings("555555") is True
    assert gw.get_admin_settings()["secret_code"] == "555555"


def test_admin_settings_fall_back_to_defaults_on_failure(broken_gateway):
    assert broken_gateway.get_admin_settings()["secret_code"] == DEFAULT_SECRET_CODE
    assert broken_gateway.update_admin_settings("999999") is False
