import logging
from typing import List, Optional

from app.adapters.data_store import SqlDataStore
from app.adapters.errors import StoreError
from app.adapters.identity import Identity
from app.config import settings
from app.repositories.product_repo import CategoryRepository, ProductRepository
from app.schemas.catalogue_schema import CategoryOut, ProductOut, ProductPage
from app.services.errors import LoadError, NotFoundError

log = logging.getLogger(__name__)


class CatalogueService:
    def __init__(self, store: SqlDataStore, identity: Optional[Identity] = None):
        self.products = ProductRepository(store, identity)
        self.categories = CategoryRepository(store, identity)

    def list_categories(self) -> List[CategoryOut]:
        try:
            return self.categories.list()
        except StoreError as e:
            raise LoadError("could not load categories") from e

    def featured_products(self, limit: Optional[int] = None) -> List[ProductOut]:
        """Newest products first, as shown on the home screen."""
        try:
            return self.products.newest(limit or settings.FEATURED_PRODUCTS_LIMIT)
        except StoreError as e:
            raise LoadError("could not load featured products") from e

    def products_by_category(self, category_id: str) -> List[ProductOut]:
        try:
            if self.categories.get(category_id) is None:
                raise NotFoundError(f"Category {category_id} not found")
            return self.products.by_category(category_id)
        except StoreError as e:
            raise LoadError("could not load products") from e

    def list_products(self, q: Optional[str] = None, page: int = 1, size: int = 20) -> ProductPage:
        try:
            items, total = self.products.list(q=q, page=page, size=size)
        except StoreError as e:
            log.error("product listing failed: %s", e)
            raise LoadError("could not load products") from e
        return ProductPage(items=items, total=total, page=page, size=size)

    def get_product(self, product_id: str) -> ProductOut:
        try:
            product = self.products.get(product_id)
        except StoreError as e:
            raise LoadError("could not load the product") from e
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product
