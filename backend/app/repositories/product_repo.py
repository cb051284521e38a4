from typing import List, Optional, Sequence, Tuple

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity
from app.schemas.catalogue_schema import CategoryOut, ProductOut


class ProductRepository:
    TABLE = "products"
    SEARCH_COLUMNS = ("name", "description")

    def __init__(self, store: SqlDataStore, identity: Optional[Identity] = None):
        self.store = store
        self.identity = identity

    def get(self, product_id: str) -> Optional[ProductOut]:
        rows = self.store.select(self.TABLE, self.identity, filters={"id": product_id}, limit=1)
        return ProductOut.model_validate(rows[0]) if rows else None

    def get_many(self, product_ids: Sequence[str]) -> List[ProductOut]:
        if not product_ids:
            return []
        rows = self.store.select(self.TABLE, self.identity, filters={"id": list(product_ids)})
        return [ProductOut.model_validate(r) for r in rows]

    def newest(self, limit: int) -> List[ProductOut]:
        rows = self.store.select(
            self.TABLE, self.identity, order_by="created_at", descending=True, limit=limit
        )
        return [ProductOut.model_validate(r) for r in rows]

    def by_category(self, category_id: str) -> List[ProductOut]:
        rows = self.store.select(
            self.TABLE, self.identity, filters={"category_id": category_id}, order_by="name"
        )
        return [ProductOut.model_validate(r) for r in rows]

    def list(
        self, q: Optional[str] = None, page: int = 1, size: int = 20
    ) -> Tuple[List[ProductOut], int]:
        total = self.store.count(
            self.TABLE, self.identity, search=q, search_columns=self.SEARCH_COLUMNS
        )
        rows = self.store.select(
            self.TABLE,
            self.identity,
            order_by="name",
            limit=size,
            offset=(page - 1) * size,
            search=q,
            search_columns=self.SEARCH_COLUMNS,
        )
        return [ProductOut.model_validate(r) for r in rows], total


class CategoryRepository:
    TABLE = "categories"

    def __init__(self, store: SqlDataStore, identity: Optional[Identity] = None):
        self.store = store
        self.identity = identity

    def list(self) -> List[CategoryOut]:
        rows = self.store.select(self.TABLE, self.identity, order_by="name")
        return [CategoryOut.model_validate(r) for r in rows]

    def get(self, category_id: str) -> Optional[CategoryOut]:
        rows = self.store.select(self.TABLE, self.identity, filters={"id": category_id}, limit=1)
        return CategoryOut.model_validate(rows[0]) if rows else None
