import logging
import uuid
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import delete, func, insert, or_, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app.adapters.errors import StoreConflict, StoreError, StoreUnavailable
from app.adapters.identity import Identity
from app.adapters.policies import AccessPolicy, default_policies
from app.db import Base, import_models

log = logging.getLogger(__name__)

Row = Dict[str, object]


class SqlDataStore:
    """
    Request/response access to the shop tables.

    Every call runs in its own short transaction and commits before
    returning, so two calls are never atomic together. Callers that need
    several writes to land as a unit must compensate on failure themselves.
    Row ownership is enforced per call by the table's access policy.
    """

    def __init__(self, bind: Engine, policies: Optional[Dict[str, AccessPolicy]] = None):
        self.engine = bind
        self.policies = policies if policies is not None else default_policies()
        import_models()
        self.tables = Base.metadata.tables

    # ---- helpers ----
    def _table(self, name: str):
        try:
            return self.tables[name]
        except KeyError:
            raise StoreError(f"unknown table: {name}")

    def _column(self, table, name: str):
        try:
            return table.c[name]
        except KeyError:
            raise StoreError(f"unknown column {table.name}.{name}")

    def _policy(self, table: str, operation: str, identity: Optional[Identity]) -> AccessPolicy:
        policy = self.policies.get(table)
        if policy is None:
            # tables without a policy are closed
            policy = AccessPolicy()
        policy.authorize(operation, table, identity)
        return policy

    def _where(self, table, policy, identity, filters, search=None, search_columns=()):
        clauses = []
        for name, value in (filters or {}).items():
            col = self._column(table, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(col.in_(list(value)))
            elif value is None:
                clauses.append(col.is_(None))
            else:
                clauses.append(col == value)
        if search and search_columns:
            like = f"%{search}%"
            clauses.append(or_(*[self._column(table, c).ilike(like) for c in search_columns]))
        scope = policy.scope(table, self.tables, identity)
        if scope is not None:
            clauses.append(scope)
        return clauses

    @contextmanager
    def _transaction(self, operation: str, table: str):
        try:
            with self.engine.begin() as conn:
                yield conn
        except StoreError:
            raise
        except IntegrityError as e:
            log.warning("%s %s rejected: %s", operation, table, e.orig)
            raise StoreConflict(f"{operation} {table} violates a constraint") from e
        except OperationalError as e:
            log.error("%s %s failed, store unavailable: %s", operation, table, e.orig)
            raise StoreUnavailable(f"store unavailable during {operation} {table}") from e
        except SQLAlchemyError as e:
            log.error("%s %s failed: %s", operation, table, e)
            raise StoreError(f"{operation} {table} failed") from e

    # ---- request/response primitives ----
    def select(
        self,
        table: str,
        identity: Optional[Identity],
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        search: Optional[str] = None,
        search_columns: Sequence[str] = (),
    ) -> List[Row]:
        t = self._table(table)
        policy = self._policy(table, "select", identity)
        stmt = select(t).where(*self._where(t, policy, identity, filters, search, search_columns))
        if order_by:
            col = self._column(t, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        with self._transaction("select", table) as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(r) for r in rows]

    def count(
        self,
        table: str,
        identity: Optional[Identity],
        filters: Optional[Row] = None,
        search: Optional[str] = None,
        search_columns: Sequence[str] = (),
    ) -> int:
        t = self._table(table)
        policy = self._policy(table, "select", identity)
        stmt = (
            select(func.count())
            .select_from(t)
            .where(*self._where(t, policy, identity, filters, search, search_columns))
        )
        with self._transaction("count", table) as conn:
            return int(conn.execute(stmt).scalar() or 0)

    def insert(
        self, table: str, rows: Union[Row, Iterable[Row]], identity: Optional[Identity]
    ) -> List[Row]:
        t = self._table(table)
        policy = self._policy(table, "insert", identity)
        prepared = [dict(rows)] if isinstance(rows, dict) else [dict(r) for r in rows]
        if not prepared:
            return []
        for row in prepared:
            row.setdefault("id", str(uuid.uuid4()))
        ids = [row["id"] for row in prepared]

        with self._transaction("insert", table) as conn:
            policy.check_rows(conn, t, self.tables, prepared, identity)
            conn.execute(insert(t), prepared)
            created = conn.execute(select(t).where(t.c.id.in_(ids))).mappings().all()

        log.debug("insert %s: %d row(s)", table, len(created))
        position = {row_id: i for i, row_id in enumerate(ids)}
        return sorted((dict(r) for r in created), key=lambda r: position[r["id"]])

    def update(
        self,
        table: str,
        patch: Row,
        identity: Optional[Identity],
        filters: Optional[Row] = None,
        increments: Optional[Dict[str, int]] = None,
    ) -> List[Row]:
        """
        Apply `patch` to the matching rows. `increments` adds to numeric
        columns in the UPDATE itself (`col = col + n`), so concurrent callers
        never overwrite each other's counts.
        """
        t = self._table(table)
        policy = self._policy(table, "update", identity)
        policy.check_patch(patch, identity)
        values = dict(patch)
        if increments:
            policy.check_patch(dict.fromkeys(increments), identity)
            for name, by in increments.items():
                values[name] = self._column(t, name) + by
        if not values:
            raise StoreError(f"update {table}: nothing to change")
        where = self._where(t, policy, identity, filters)

        with self._transaction("update", table) as conn:
            ids = list(conn.execute(select(t.c.id).where(*where)).scalars())
            if not ids:
                return []
            conn.execute(update(t).where(t.c.id.in_(ids)).values(**values))
            rows = conn.execute(select(t).where(t.c.id.in_(ids))).mappings().all()

        log.debug("update %s: %d row(s)", table, len(rows))
        return [dict(r) for r in rows]

    def delete(
        self, table: str, identity: Optional[Identity], filters: Optional[Row] = None
    ) -> int:
        t = self._table(table)
        policy = self._policy(table, "delete", identity)
        where = self._where(t, policy, identity, filters)

        with self._transaction("delete", table) as conn:
            ids = list(conn.execute(select(t.c.id).where(*where)).scalars())
            if not ids:
                return 0
            result = conn.execute(delete(t).where(t.c.id.in_(ids)))

        log.debug("delete %s: %d row(s)", table, result.rowcount)
        return result.rowcount

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
