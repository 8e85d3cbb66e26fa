import contextlib
import sqlite3
from typing import Iterable, List

try:
    import psycopg2
    import psycopg2.extras
except ImportError:  # pragma: no cover - optional dependency for postgres
    psycopg2 = None

from flask import current_app, g


class Database:
    def __init__(self, backend: str, connection):
        self.backend = backend
        self._conn = connection
        self._tx_depth = 0

    def execute(self, sql: str, params: Iterable | None = None):
        if self.backend == "postgres":
            cursor = self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if params:
                sql = _convert_qmark_to_pg(sql)
                cursor.execute(sql, list(params))
            else:
                cursor.execute(sql)
            return cursor
        return self._conn.execute(sql, params or ())

    @contextlib.contextmanager
    def transaction(self):
        """Run the block in one database transaction.

        Nested calls join the outer transaction; only the outermost block
        commits or rolls back. SQLite takes the write lock up front
        (``BEGIN IMMEDIATE``) so read-validate-write sequences do not
        interleave with other writers.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        self.execute("BEGIN IMMEDIATE" if self.backend == "sqlite" else "BEGIN")
        self._tx_depth = 1
        try:
            yield self
        except BaseException:
            self._tx_depth = 0
            self.execute("ROLLBACK")
            raise
        self._tx_depth = 0
        self.execute("COMMIT")

    def commit(self):
        self._conn.commit()

    def close(self):
        self._conn.close()


def _convert_qmark_to_pg(sql: str) -> str:
    return sql.replace("?", "%s")


def connect(db_path: str) -> Database:
    if db_path.lower().startswith("postgres"):
        if psycopg2 is None:
            raise RuntimeError("psycopg2 nao instalado.")
        conn = psycopg2.connect(db_path)
        conn.autocommit = True
        return Database("postgres", conn)

    # Transactions are explicit (Database.transaction), so the driver runs in autocommit mode.
    conn = sqlite3.connect(db_path, timeout=30.0, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return Database("sqlite", conn)


def get_db():
    if "db" not in g:
        db_path = current_app.config["DB_PATH"]
        g.db = connect(db_path)
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db():
    init_schema(get_db())


SCHEMA_TABLES: List[str] = [
    "second_quality_items",
    "order_review_rejected_items",
    "order_reviews",
    "order_target_suppliers",
    "order_status_history",
    "orders",
    "company_user_permissions",
    "company_users",
    "users",
    "companies",
]


_SCHEMA_STATEMENTS: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS companies (
        id TEXT PRIMARY KEY,
        legal_name TEXT NOT NULL,
        trade_name TEXT,
        company_type TEXT NOT NULL CHECK (company_type IN ('BRAND','SUPPLIER')),
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS company_users (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users (id),
        company_id TEXT NOT NULL REFERENCES companies (id),
        company_role TEXT NOT NULL DEFAULT 'VIEWER',
        is_company_admin INTEGER NOT NULL DEFAULT 0,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        UNIQUE (user_id, company_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS company_user_permissions (
        id TEXT PRIMARY KEY,
        company_user_id TEXT NOT NULL REFERENCES company_users (id),
        permission TEXT NOT NULL,
        granted INTEGER NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (company_user_id, permission)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        display_id TEXT NOT NULL UNIQUE,
        brand_id TEXT NOT NULL REFERENCES companies (id),
        supplier_id TEXT REFERENCES companies (id),
        assignment_type TEXT NOT NULL CHECK (assignment_type IN ('DIRECT','BIDDING','HYBRID')),
        status TEXT NOT NULL,
        product_type TEXT NOT NULL,
        product_category TEXT,
        product_name TEXT NOT NULL,
        op TEXT,
        artigo TEXT,
        description TEXT,
        observations TEXT,
        quantity INTEGER NOT NULL CHECK (quantity > 0),
        price_per_unit TEXT NOT NULL,
        total_value TEXT NOT NULL,
        platform_fee TEXT NOT NULL,
        net_value TEXT NOT NULL,
        materials_provided INTEGER NOT NULL DEFAULT 0,
        delivery_deadline TEXT NOT NULL,
        payment_terms TEXT,
        accepted_at TEXT,
        accepted_by_id TEXT,
        rejection_reason TEXT,
        parent_order_id TEXT REFERENCES orders (id),
        revision_number INTEGER NOT NULL DEFAULT 0,
        origin TEXT NOT NULL DEFAULT 'ORIGINAL' CHECK (origin IN ('ORIGINAL','REWORK')),
        total_review_count INTEGER NOT NULL DEFAULT 0,
        approval_count INTEGER NOT NULL DEFAULT 0,
        rejection_count INTEGER NOT NULL DEFAULT 0,
        second_quality_count INTEGER NOT NULL DEFAULT 0,
        created_by_id TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (parent_order_id, revision_number)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_orders_brand_status ON orders (brand_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_orders_supplier_status ON orders (supplier_id, status)",
    """
    CREATE TABLE IF NOT EXISTS order_status_history (
        id TEXT PRIMARY KEY,
        order_id TEXT NOT NULL REFERENCES orders (id),
        position INTEGER NOT NULL,
        previous_status TEXT,
        new_status TEXT NOT NULL,
        changed_by_id TEXT NOT NULL,
        changed_by_name TEXT,
        notes TEXT,
        created_at TEXT NOT NULL,
        UNIQUE (order_id, position)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_target_suppliers (
        id TEXT PRIMARY KEY,
        order_id TEXT NOT NULL REFERENCES orders (id),
        supplier_id TEXT NOT NULL REFERENCES companies (id),
        status TEXT NOT NULL DEFAULT 'PENDING' CHECK (status IN ('PENDING','ACCEPTED','REJECTED')),
        responded_at TEXT,
        rejection_reason TEXT,
        created_at TEXT NOT NULL,
        UNIQUE (order_id, supplier_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_reviews (
        id TEXT PRIMARY KEY,
        order_id TEXT NOT NULL REFERENCES orders (id),
        review_type TEXT NOT NULL CHECK (review_type IN ('QUALITY_CHECK','FINAL_REVIEW')),
        result TEXT NOT NULL CHECK (result IN ('APPROVED','PARTIAL','REJECTED')),
        total_quantity INTEGER NOT NULL,
        approved_quantity INTEGER NOT NULL,
        rejected_quantity INTEGER NOT NULL,
        second_quality_quantity INTEGER NOT NULL,
        notes TEXT,
        reviewed_by_id TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_review_rejected_items (
        id TEXT PRIMARY KEY,
        review_id TEXT NOT NULL REFERENCES order_reviews (id),
        reason TEXT NOT NULL,
        quantity INTEGER NOT NULL CHECK (quantity > 0),
        defect_description TEXT,
        requires_rework INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS second_quality_items (
        id TEXT PRIMARY KEY,
        order_id TEXT NOT NULL REFERENCES orders (id),
        review_id TEXT REFERENCES order_reviews (id),
        quantity INTEGER NOT NULL CHECK (quantity > 0),
        defect_type TEXT NOT NULL,
        defect_description TEXT,
        original_unit_value TEXT NOT NULL,
        discount_percentage TEXT,
        created_at TEXT NOT NULL
    )
    """,
]


def init_schema(db: Database) -> None:
    for statement in _SCHEMA_STATEMENTS:
        db.execute(statement)
    db.commit()
