"""Record store — the data-access interface the services are written against.

Wraps a SQLAlchemy session and exposes the handful of primitives the
lead-routing engine needs:

- get / first / find: point lookups and filtered lists (equality, IS NULL,
  and set membership when a filter value is a list/tuple/set)
- insert / update: single-row writes, flushed immediately
- upsert / bulk_upsert: INSERT ... ON CONFLICT on a unique key
- conditional_update: compare-and-set ("update row X only if column Y is Z")
- delete_where: bulk delete for cascade clean-up
- savepoint: nested transaction for writes that must succeed or vanish together

One instance is built in create_app() around the request-scoped
`db.session` and handed to every service call. Nothing here commits; the
caller (a route or CLI command) owns the transaction.
"""

import sqlalchemy as sa
from flask import current_app


_COLLECTION_TYPES = (list, tuple, set, frozenset)


class RecordStore:
    def __init__(self, session):
        self.session = session

    # ── Reads ────────────────────────────────────────────────

    def get(self, model, row_id):
        if row_id is None:
            return None
        return self.session.get(model, row_id)

    def find(self, model, order_by=None, options=(), **filters):
        """Return all rows of `model` matching the keyword filters."""
        stmt = sa.select(model).where(*self._predicates(model, filters))
        if options:
            stmt = stmt.options(*options)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.session.scalars(stmt).unique())

    def first(self, model, **filters):
        stmt = sa.select(model).where(*self._predicates(model, filters)).limit(1)
        return self.session.scalars(stmt).first()

    def count(self, model, **filters):
        stmt = (
            sa.select(sa.func.count())
            .select_from(model)
            .where(*self._predicates(model, filters))
        )
        return self.session.scalar(stmt)

    def scalars(self, stmt):
        """Run an arbitrary select (joins etc.) and return ORM objects."""
        return list(self.session.scalars(stmt).unique())

    def execute(self, stmt):
        return self.session.execute(stmt)

    # ── Writes ───────────────────────────────────────────────

    def insert(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def update(self, obj, **values):
        for key, value in values.items():
            setattr(obj, key, value)
        self.session.flush()
        return obj

    def upsert(self, model, values, conflict_cols, update_cols=None):
        """Insert one row, or resolve a unique-key conflict.

        With update_cols, the existing row gets those columns from `values`;
        without, the existing row is left untouched.
        """
        return self.bulk_upsert(model, [values], conflict_cols, update_cols)

    def bulk_upsert(self, model, rows, conflict_cols, update_cols=None):
        """Multi-row INSERT ... ON CONFLICT. Returns the affected row count."""
        if not rows:
            return 0
        self.session.flush()

        insert = self._dialect_insert(model)
        stmt = insert(model.__table__).values(list(rows))
        if update_cols:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(conflict_cols),
                set_={col: stmt.excluded[col] for col in update_cols},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_cols))

        result = self.session.execute(stmt)
        self._expire_loaded(model)
        return result.rowcount

    def conditional_update(self, model, row_id, expected, values):
        """Compare-and-set on a single row.

        Applies `values` to row `row_id` only if every column in `expected`
        currently holds the expected value (None means IS NULL, a collection
        means IN). Returns True when the row was updated.
        """
        self.session.flush()
        stmt = (
            sa.update(model)
            .where(model.id == row_id)
            .where(*self._predicates(model, expected))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self._expire_loaded(model, lambda obj: obj.id == row_id)
        return result.rowcount == 1

    def delete_where(self, model, **filters):
        self.session.flush()
        stmt = sa.delete(model).where(*self._predicates(model, filters))
        result = self.session.execute(stmt)
        return result.rowcount

    def delete(self, obj):
        self.session.delete(obj)
        self.session.flush()

    def savepoint(self):
        """Nested transaction; use as a context manager."""
        return self.session.begin_nested()

    def flush(self):
        self.session.flush()

    # ── Helpers ──────────────────────────────────────────────

    @staticmethod
    def _predicates(model, filters):
        predicates = []
        for name, value in filters.items():
            column = getattr(model, name)
            if value is None:
                predicates.append(column.is_(None))
            elif isinstance(value, _COLLECTION_TYPES):
                predicates.append(column.in_(list(value)))
            else:
                predicates.append(column == value)
        return predicates

    def _dialect_insert(self, model):
        dialect = self.session.get_bind(mapper=model).dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise NotImplementedError(f"Upsert is not supported on {dialect}.")
        return insert

    def _expire_loaded(self, model, predicate=None):
        """Expire identity-map copies a bulk statement may have made stale."""
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, model) and (predicate is None or predicate(obj)):
                self.session.expire(obj)


def get_store():
    """The RecordStore bound to the current app (see create_app)."""
    return current_app.extensions["record_store"]
