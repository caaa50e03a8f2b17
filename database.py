"""
MongoDB access for the showcase.

`Gateway` is the only place that knows the store's field names and the only
place that talks to pymongo. Every call catches store errors, logs them and
returns an empty/None/False result, so nothing above this module ever sees a
pymongo exception.
"""
import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DEFAULT_SECRET_CODE = "123456"

DEFAULT_CATEGORIES = [
    {"name": "Electronics", "subcategories": ["Mobile Phones", "Laptops", "Tablets", "Accessories"]},
    {"name": "Fashion", "subcategories": ["Men's Clothing", "Women's Clothing", "Footwear", "Accessories"]},
    {"name": "Home & Kitchen", "subcategories": ["Furniture", "Appliances", "Decor", "Kitchen Tools"]},
]

# application name -> store name, per collection
FIELD_NAMES: Dict[str, Dict[str, str]] = {
    "products": {
        "name": "name",
        "image_url": "imageurl",
        "mrp": "mrp",
        "selling_price": "sellingprice",
        "category": "category",
        "subcategory": "subcategory",
        "code": "code",
        "affiliate_url": "affiliateurl",
        "clicks": "clicks",
    },
    "categories": {
        "name": "name",
        "subcategories": "subcategories",
    },
    "banners": {
        "image_url": "imageurl",
        "affiliate_url": "affiliateurl",
        "title": "title",
        "is_active": "isactive",
    },
    "analytics": {
        "product_id": "productid",
        "product_name": "productname",
        "clicks": "clicks",
        "last_clicked": "lastclicked",
    },
    "admin_settings": {
        "secret_code": "secretcode",
    },
}

ORDERING = {
    "products": [("created_at", -1), ("_id", -1)],
    "categories": [("name", 1)],
    "banners": [("created_at", -1), ("_id", -1)],
    "analytics": [("clicks", -1)],
}


class StoreUnavailable(PyMongoError):
    """No database configured."""


def _connect():
    url = os.getenv("DATABASE_URL")
    name = os.getenv("DATABASE_NAME")
    if not url or not name:
        logger.warning("DATABASE_URL or DATABASE_NAME not set; store calls will fail")
        return None
    client = MongoClient(url)
    return client[name]


db = _connect()


# -----------------------------
# Field-name translation
# -----------------------------

def to_store(entity: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    names = FIELD_NAMES[entity]
    return {names[k]: v for k, v in fields.items() if k in names}


def from_store(entity: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    reverse = {v: k for k, v in FIELD_NAMES[entity].items()}
    record = {reverse[k]: v for k, v in doc.items() if k in reverse}
    if "_id" in doc:
        record["id"] = str(doc["_id"]) if isinstance(doc["_id"], ObjectId) else doc["_id"]
    return record


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------
# Gateway
# -----------------------------

class Gateway:
    def __init__(self, database=None):
        self.db = database

    def _collection(self, entity: str):
        if entity not in FIELD_NAMES:
            raise KeyError(f"Unknown entity: {entity}")
        if self.db is None:
            raise StoreUnavailable("Database not configured")
        return self.db[entity]

    def list(self, entity: str) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection(entity).find({})
            if entity in ORDERING:
                cursor = cursor.sort(ORDERING[entity])
            return [from_store(entity, d) for d in cursor]
        except PyMongoError:
            logger.exception("Failed to fetch %s", entity)
            return []

    def get(self, entity: str, id: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self._collection(entity).find_one({"_id": ObjectId(id)})
            return from_store(entity, doc) if doc else None
        except (PyMongoError, InvalidId, TypeError):
            logger.exception("Failed to fetch %s %s", entity, id)
            return None

    def lookup(self, entity: str, criteria: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Match one record on application-named fields.

        Returns (ok, record): ok is False when the store failed, so callers
        can tell "not there" from "could not look".
        """
        try:
            doc = self._collection(entity).find_one(to_store(entity, criteria))
        except PyMongoError:
            logger.exception("Failed to look up %s by %s", entity, criteria)
            return False, None
        return True, (from_store(entity, doc) if doc else None)

    def find_one(self, entity: str, criteria: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.lookup(entity, criteria)[1]

    def count(self, entity: str) -> Optional[int]:
        try:
            return self._collection(entity).count_documents({})
        except PyMongoError:
            logger.exception("Failed to count %s", entity)
            return None

    def insert(self, entity: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        data = to_store(entity, fields)
        data["created_at"] = now_utc()
        try:
            result = self._collection(entity).insert_one(data)
            doc = self._collection(entity).find_one({"_id": result.inserted_id})
            return from_store(entity, doc)
        except PyMongoError:
            logger.exception("Failed to add %s", entity)
            return None

    def update(self, entity: str, id: str, fields: Dict[str, Any]) -> bool:
        data = to_store(entity, fields)
        data["updated_at"] = now_utc()
        try:
            result = self._collection(entity).update_one({"_id": ObjectId(id)}, {"$set": data})
        except (PyMongoError, InvalidId, TypeError):
            logger.exception("Failed to update %s %s", entity, id)
            return False
        if result.matched_count == 0:
            logger.warning("Update of %s %s matched nothing", entity, id)
            return False
        return True

    def delete(self, entity: str, id: str) -> bool:
        try:
            result = self._collection(entity).delete_one({"_id": ObjectId(id)})
        except (PyMongoError, InvalidId, TypeError):
            logger.exception("Failed to delete %s %s", entity, id)
            return False
        if result.deleted_count == 0:
            logger.warning("Delete of %s %s matched nothing", entity, id)
            return False
        return True

    # -----------------------------
    # Admin settings singleton
    # -----------------------------
    def get_admin_settings(self) -> Dict[str, Any]:
        defaults = {"secret_code": DEFAULT_SECRET_CODE, "session_active": False, "session_expiry": 0}
        try:
            doc = self._collection("admin_settings").find_one({})
        except PyMongoError:
            logger.exception("Failed to fetch admin settings")
            return defaults
        if not doc:
            self.initialize_admin_settings()
            return defaults
        record = from_store("admin_settings", doc)
        return {**defaults, "secret_code": record.get("secret_code") or DEFAULT_SECRET_CODE}

    def initialize_admin_settings(self, secret_code: str = DEFAULT_SECRET_CODE) -> None:
        if self.count("admin_settings") == 0:
            if self.insert("admin_settings", {"secret_code": secret_code}) is not None:
                logger.info("Seeded default admin settings")

    def update_admin_settings(self, secret_code: str) -> bool:
        try:
            existing = self._collection("admin_settings").find_one({})
        except PyMongoError:
            logger.exception("Failed to update admin settings")
            return False
        if existing is None:
            return self.insert("admin_settings", {"secret_code": secret_code}) is not None
        return self.update("admin_settings", str(existing["_id"]), {"secret_code": secret_code})

    # -----------------------------
    # Seeding
    # -----------------------------
    def initialize_default_categories(self) -> None:
        if self.count("categories") != 0:
            return
        try:
            self._collection("categories").insert_many(
                [{**to_store("categories", c), "created_at": now_utc()} for c in DEFAULT_CATEGORIES]
            )
            logger.info("Seeded %d default categories", len(DEFAULT_CATEGORIES))
        except PyMongoError:
            logger.exception("Failed to initialize default categories")

    def initialize_defaults(self) -> None:
        self.initialize_default_categories()
        self.initialize_admin_settings()
