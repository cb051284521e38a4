"""
Row-level access policies applied by the data store.

Each table is guarded by one policy. A policy decides which operations an
identity may issue, narrows select/update/delete to the rows the identity
owns, and checks inserted rows before they are written.
"""
from typing import Dict, Iterable, Optional

from sqlalchemy import Table, select

from app.adapters.errors import AccessDenied
from app.adapters.identity import Identity

ALL_OPERATIONS = frozenset({"select", "insert", "update", "delete"})


class AccessPolicy:
    operations = frozenset()

    def authorize(self, operation: str, table: str, identity: Optional[Identity]):
        if operation not in self.operations:
            raise AccessDenied(f"{operation} on {table} is not permitted")

    def scope(self, table: Table, tables, identity: Optional[Identity]):
        return None

    def check_rows(self, conn, table: Table, tables, rows: Iterable[dict], identity):
        pass

    def check_patch(self, patch: dict, identity: Optional[Identity]):
        pass


class PublicReadPolicy(AccessPolicy):
    """Shared catalogue tables: anyone may read, nobody writes through the store."""

    operations = frozenset({"select"})


class OwnerPolicy(AccessPolicy):
    def __init__(self, owner_column: str = "user_id", operations=ALL_OPERATIONS):
        self.owner_column = owner_column
        self.operations = frozenset(operations)

    def authorize(self, operation, table, identity):
        super().authorize(operation, table, identity)
        if identity is None:
            raise AccessDenied(f"{operation} on {table} requires an authenticated identity")

    def scope(self, table, tables, identity):
        return table.c[self.owner_column] == identity.id

    def check_rows(self, conn, table, tables, rows, identity):
        for row in rows:
            if row.get(self.owner_column) != identity.id:
                raise AccessDenied(f"cannot write {table.name} rows owned by another user")

    def check_patch(self, patch, identity):
        if self.owner_column in patch and patch[self.owner_column] != identity.id:
            raise AccessDenied("cannot transfer ownership of a row")


class ParentOwnerPolicy(OwnerPolicy):
    """Rows owned through a parent row, e.g. order_items via orders.user_id."""

    def __init__(
        self,
        parent_table: str,
        foreign_key: str,
        owner_column: str = "user_id",
        operations=ALL_OPERATIONS,
    ):
        super().__init__(owner_column=owner_column, operations=operations)
        self.parent_table = parent_table
        self.foreign_key = foreign_key

    def _owned_parents(self, tables, identity):
        parent = tables[self.parent_table]
        return select(parent.c.id).where(parent.c[self.owner_column] == identity.id)

    def scope(self, table, tables, identity):
        return table.c[self.foreign_key].in_(self._owned_parents(tables, identity))

    def check_rows(self, conn, table, tables, rows, identity):
        wanted = {row.get(self.foreign_key) for row in rows}
        parent = tables[self.parent_table]
        owned = set(
            conn.execute(
                self._owned_parents(tables, identity).where(parent.c.id.in_(list(wanted)))
            ).scalars()
        )
        if owned != wanted:
            raise AccessDenied(
                f"cannot write {table.name} rows for a {self.parent_table} row you do not own"
            )

    def check_patch(self, patch, identity):
        if self.foreign_key in patch:
            raise AccessDenied(f"cannot move rows to another {self.parent_table} row")


def default_policies() -> Dict[str, AccessPolicy]:
    return {
        "categories": PublicReadPolicy(),
        "products": PublicReadPolicy(),
        "cart_items": OwnerPolicy("user_id"),
        # no update: status changes belong to fulfilment, not the shopper
        "orders": OwnerPolicy("user_id", operations={"select", "insert", "delete"}),
        "order_items": ParentOwnerPolicy(
            "orders", "order_id", operations={"select", "insert", "delete"}
        ),
    }
