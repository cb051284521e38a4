from typing import Dict, List, Optional

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity


class CartRepository:
    """
    cart_items calls for one identity. Rows come back as plain dicts exactly
    as the store persisted them; joining with products is the caller's job.
    """

    TABLE = "cart_items"

    def __init__(self, store: SqlDataStore, identity: Identity):
        self.store = store
        self.identity = identity

    def list_rows(self) -> List[Dict]:
        return self.store.select(
            self.TABLE, self.identity, filters={"user_id": self.identity.id}, order_by="created_at"
        )

    def insert_row(self, product_id: str, quantity: int) -> Dict:
        created = self.store.insert(
            self.TABLE,
            {"user_id": self.identity.id, "product_id": product_id, "quantity": quantity},
            self.identity,
        )
        return created[0]

    def set_quantity(self, product_id: str, quantity: int) -> Optional[Dict]:
        rows = self.store.update(
            self.TABLE,
            {"quantity": quantity},
            self.identity,
            filters={"user_id": self.identity.id, "product_id": product_id},
        )
        return rows[0] if rows else None

    def increment_quantity(self, product_id: str, by: int) -> Optional[Dict]:
        rows = self.store.update(
            self.TABLE,
            {},
            self.identity,
            filters={"user_id": self.identity.id, "product_id": product_id},
            increments={"quantity": by},
        )
        return rows[0] if rows else None

    def delete_row(self, product_id: str) -> int:
        return self.store.delete(
            self.TABLE, self.identity, filters={"user_id": self.identity.id, "product_id": product_id}
        )

    def delete_all(self) -> int:
        return self.store.delete(self.TABLE, self.identity, filters={"user_id": self.identity.id})
