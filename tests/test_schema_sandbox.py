import os
import unittest

from texlink import create_app
from texlink.config import Config
from texlink.db import SCHEMA_TABLES, close_db, get_db, init_schema
from texlink.errors import DuplicateKeyError
from texlink.infrastructure.repositories import CompanyRepository
from tests.helpers.seed import seed_marketplace
from tests.helpers.temp_db import TempDbSandbox


class SchemaSandboxTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="schema_sandbox")
        self.app = create_app(self._temp_db.make_config(Config, TESTING=True))
        self._ctx = self.app.app_context()
        self._ctx.push()
        self.db = get_db()

    def tearDown(self) -> None:
        close_db()
        self._ctx.pop()
        self._temp_db.cleanup()

    def _tables(self):
        rows = self.db.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        return {row["name"] for row in rows}

    def test_testing_app_creates_the_order_schema(self) -> None:
        self.assertEqual(self.app.config["DB_PATH"], self._temp_db.db_path)
        self.assertTrue(set(SCHEMA_TABLES).issubset(self._tables()))

    def test_schema_init_is_repeatable_and_keeps_data(self) -> None:
        market = seed_marketplace(self.db, supplier_names=("alfa",))
        init_schema(self.db)

        memberships = CompanyRepository().get_memberships(self.db, market.supplier_users["alfa"])
        self.assertEqual([membership.company_id for membership in memberships], [market.suppliers["alfa"]])

    def test_unique_email_maps_to_duplicate_key(self) -> None:
        companies = CompanyRepository()
        with self.db.transaction():
            companies.create_user(self.db, name="Ana", email="ana@marca.test")
        with self.assertRaises(DuplicateKeyError):
            with self.db.transaction():
                companies.create_user(self.db, name="Ana 2", email="ana@marca.test")
        row = self.db.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        self.assertEqual(int(row["total"]), 1)

    def test_cleanup_removes_the_sandbox(self) -> None:
        sandbox = TempDbSandbox(prefix="schema_sandbox_cleanup")
        self.assertTrue(os.path.isdir(sandbox.temp_dir))
        sandbox.cleanup()
        self.assertFalse(os.path.exists(sandbox.temp_dir))


if __name__ == "__main__":
    unittest.main()
