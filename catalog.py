"""
Products, categories and subcategories, kept consistent with each other.

Products reference their category and subcategory by *name*. The rules here
keep those names valid: a category or subcategory cannot be deleted while a
product uses it, and renaming a subcategory rewrites every product under it.
Renaming a category does not touch products unless the service is built with
`cascade_category_rename=True`.
"""
import logging
from typing import List, Optional

from admin_store import AdminStore
from errors import ValidationError, NotFoundError, InUseError, StoreError, CascadeError
from product_utils import generate_product_code, validate_url
from schemas import Product, Category, ProductIn

logger = logging.getLogger(__name__)


class ProductForm:
    """Edit-form state for a single product."""

    def __init__(self, product: Optional[Product] = None):
        self.data = ProductIn(**product.model_dump(exclude={"id", "clicks"})) if product else ProductIn()
        self.product_id = product.id if product else None

    def select_category(self, name: str) -> None:
        # subcategory choices come from the new category; the old pick may not exist there
        self.data = self.data.model_copy(update={"category": name, "subcategory": ""})

    def select_subcategory(self, name: str) -> None:
        self.data = self.data.model_copy(update={"subcategory": name})

    def subcategory_choices(self, categories: List[Category]) -> List[str]:
        category = next((c for c in categories if c.name == self.data.category), None)
        return list(category.subcategories) if category else []


class CatalogService:
    def __init__(self, gateway, store: AdminStore, cascade_category_rename: bool = False):
        self.gateway = gateway
        self.store = store
        self.cascade_category_rename = cascade_category_rename

    def _category(self, category_id: str) -> Category:
        category = self.store.find_category(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    # -----------------------------
    # Products
    # -----------------------------
    def save_product(self, form: ProductIn, product_id: Optional[str] = None) -> Product:
        if not (form.name and form.image_url and form.affiliate_url and form.category and form.subcategory):
            raise ValidationError("Please fill in all required fields")
        if not validate_url(form.affiliate_url):
            raise ValidationError("Please enter a valid affiliate URL")
        existing = None
        if product_id is not None:
            existing = self.store.find_product(product_id)
            if existing is None:
                raise NotFoundError("Product not found")
        # an edit that keeps its filing is accepted even if a category rename left it stale
        if existing is None or (form.category, form.subcategory) != (existing.category, existing.subcategory):
            self._check_filing(form.category, form.subcategory)

        if existing is not None:
            updates = form.model_dump()
            if not updates["code"]:
                updates["code"] = existing.code or generate_product_code()
            if not self.gateway.update("products", product_id, updates):
                raise StoreError("Failed to save product")
            product = existing.model_copy(update=updates)
            self.store.replace_product(product)
            return product

        fields = {**form.model_dump(), "code": form.code or generate_product_code(), "clicks": 0}
        record = self.gateway.insert("products", fields)
        if record is None:
            raise StoreError("Failed to save product")
        product = Product(**record)
        self.store.products.insert(0, product)
        logger.info("Added product %s (%s)", product.id, product.code)
        return product

    def _check_filing(self, category_name: str, subcategory: str) -> None:
        category = self.store.find_category_by_name(category_name)
        if category is None:
            raise ValidationError(f'Category "{category_name}" does not exist')
        if subcategory not in category.subcategories:
            raise ValidationError(f'Subcategory "{subcategory}" does not exist in "{category.name}"')

    def delete_product(self, product_id: str) -> None:
        if self.store.find_product(product_id) is None:
            raise NotFoundError("Product not found")
        if not self.gateway.delete("products", product_id):
            raise StoreError("Failed to delete product")
        self.store.products = [p for p in self.store.products if p.id != product_id]

    # -----------------------------
    # Categories
    # -----------------------------
    def add_category(self, name: str = "New Category", subcategories: Optional[List[str]] = None) -> Category:
        if subcategories is None:
            subcategories = ["New Subcategory"]
        record = self.gateway.insert("categories", {"name": name, "subcategories": list(subcategories)})
        if record is None:
            raise StoreError("Failed to add category")
        category = Category(**record)
        self.store.categories.append(category)
        return category

    def rename_category(self, category_id: str, name: str) -> Category:
        """
        Rename a category in place.

        Products keep the old category string unless cascading is enabled, in
        which case each of them is updated first, one store call per product.
        Products left on the old name can still be edited as long as their
        category and subcategory are not changed.
        """
        category = self._category(category_id)
        name = name.strip()
        if not name:
            raise ValidationError("Please enter a category name")
        if name == category.name:
            return category

        if self.cascade_category_rename:
            self._rewrite_products(
                self.store.products_in_category(category.name), {"category": name},
                "Failed to rename category",
            )
        if not self.gateway.update("categories", category_id, {"name": name}):
            raise StoreError("Failed to update category")
        renamed = category.model_copy(update={"name": name})
        self.store.replace_category(renamed)
        return renamed

    def delete_category(self, category_id: str) -> None:
        category = self._category(category_id)
        in_use = self.store.products_in_category(category.name)
        if in_use:
            logger.info("Refused to delete category %r: %d product(s) use it", category.name, len(in_use))
            raise InUseError(
                f'Cannot delete category "{category.name}" because {len(in_use)} product(s) are using it. '
                "Please delete or reassign those products first.",
                count=len(in_use),
            )
        if not self.gateway.delete("categories", category_id):
            raise StoreError("Failed to delete category")
        self.store.categories = [c for c in self.store.categories if c.id != category_id]

    # -----------------------------
    # Subcategories
    # -----------------------------
    def _save_subcategories(self, category: Category, subcategories: List[str], failure: str) -> Category:
        if not self.gateway.update("categories", category.id, {"subcategories": subcategories}):
            raise StoreError(failure)
        updated = category.model_copy(update={"subcategories": subcategories})
        self.store.replace_category(updated)
        return updated

    def add_subcategory(self, category_id: str, name: str) -> Category:
        category = self._category(category_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a subcategory name")
        if name in category.subcategories:
            raise ValidationError("This subcategory already exists")
        return self._save_subcategories(category, category.subcategories + [name], "Failed to add subcategory")

    def delete_subcategory(self, category_id: str, name: str) -> Category:
        category = self._category(category_id)
        if name not in category.subcategories:
            raise NotFoundError("Subcategory not found")
        in_use = self.store.products_in_subcategory(category.name, name)
        if in_use:
            logger.info("Refused to delete subcategory %r: %d product(s) use it", name, len(in_use))
            raise InUseError(
                f'Cannot delete subcategory "{name}" because {len(in_use)} product(s) are using it. '
                "Please delete or reassign those products first.",
                count=len(in_use),
            )
        remaining = [s for s in category.subcategories if s != name]
        return self._save_subcategories(category, remaining, "Failed to delete subcategory")

    def rename_subcategory(self, category_id: str, old_name: str, new_name: str) -> Category:
        """
        Rename a subcategory and every product filed under it.

        Each affected product is updated with its own store call, then the
        category's list. This is not atomic: if any product update fails the
        category list is left as it was and a CascadeError names the products
        that were renamed (they stay renamed) and those that were not.
        """
        category = self._category(category_id)
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValidationError("Please enter a subcategory name")
        if old_name not in category.subcategories:
            raise NotFoundError("Subcategory not found")
        if new_name == old_name:
            return category
        if new_name in category.subcategories:
            raise ValidationError("This subcategory already exists")

        self._rewrite_products(
            self.store.products_in_subcategory(category.name, old_name), {"subcategory": new_name},
            "Failed to update subcategory",
        )
        subcategories = [new_name if s == old_name else s for s in category.subcategories]
        return self._save_subcategories(category, subcategories, "Failed to update subcategory")

    def _rewrite_products(self, products: List[Product], updates: dict, failure: str) -> None:
        renamed, failed = [], []
        for p in products:
            if self.gateway.update("products", p.id, updates):
                self.store.replace_product(p.model_copy(update=updates))
                renamed.append(p.id)
            else:
                failed.append(p.id)
        if failed:
            logger.warning("%s: %d of %d product updates failed", failure, len(failed), len(products))
            raise CascadeError(
                f"{failure}: {len(failed)} product(s) could not be updated",
                renamed=renamed,
                failed=failed,
            )
