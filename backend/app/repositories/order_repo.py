from typing import Dict, List, Optional, Set

from app.adapters.data_store import SqlDataStore
from app.adapters.identity import Identity
from app.models.order import OrderStatus


class OrderRepository:
    ORDERS = "orders"
    ITEMS = "order_items"

    def __init__(self, store: SqlDataStore, identity: Identity):
        self.store = store
        self.identity = identity

    def create_order(self, total_amount, status: OrderStatus = OrderStatus.PENDING) -> Dict:
        created = self.store.insert(
            self.ORDERS,
            {"user_id": self.identity.id, "total_amount": total_amount, "status": status},
            self.identity,
        )
        return created[0]

    def create_items(self, order_id: str, lines: List[Dict]) -> List[Dict]:
        rows = [
            {
                "order_id": order_id,
                "product_id": line["product_id"],
                "quantity": line["quantity"],
                "price": line["price"],
            }
            for line in lines
        ]
        return self.store.insert(self.ITEMS, rows, self.identity)

    def delete_items(self, order_id: str) -> int:
        return self.store.delete(self.ITEMS, self.identity, filters={"order_id": order_id})

    def delete_order(self, order_id: str) -> int:
        return self.store.delete(
            self.ORDERS, self.identity, filters={"id": order_id, "user_id": self.identity.id}
        )

    def get_order(self, order_id: str) -> Optional[Dict]:
        rows = self.store.select(
            self.ORDERS, self.identity, filters={"id": order_id, "user_id": self.identity.id}, limit=1
        )
        return rows[0] if rows else None

    def list_items(self, order_id: str) -> List[Dict]:
        return self.store.select(self.ITEMS, self.identity, filters={"order_id": order_id})

    def recent(self, limit: Optional[int] = None) -> List[Dict]:
        return self.store.select(
            self.ORDERS,
            self.identity,
            filters={"user_id": self.identity.id},
            order_by="created_at",
            descending=True,
            limit=limit,
        )

    def orders_with_items(self, order_ids: List[str]) -> Set[str]:
        if not order_ids:
            return set()
        rows = self.store.select(self.ITEMS, self.identity, filters={"order_id": list(order_ids)})
        return {row["order_id"] for row in rows}
