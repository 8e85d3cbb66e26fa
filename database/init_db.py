import os
import sys

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from texlink import create_app
from texlink.db import get_db, init_db
from texlink.domain.models import BRAND, SUPPLIER
from texlink.infrastructure.repositories import CompanyRepository
from texlink.observability import bind_request_id


app = create_app()


def seed_demo(db) -> None:
    companies = CompanyRepository()
    brand_id = companies.create_company(db, legal_name="Marca Demo Ltda", trade_name="Marca Demo", company_type=BRAND)
    supplier_id = companies.create_company(
        db,
        legal_name="Faccao Demo Ltda",
        trade_name="Faccao Demo",
        company_type=SUPPLIER,
    )
    brand_user = companies.create_user(db, name="Ana Marca", email="ana@marca.demo")
    supplier_user = companies.create_user(db, name="Joao Faccao", email="joao@faccao.demo")
    companies.add_membership(db, user_id=brand_user, company_id=brand_id, company_role="ADMIN", is_company_admin=True)
    companies.add_membership(
        db,
        user_id=supplier_user,
        company_id=supplier_id,
        company_role="PRODUCTION_MANAGER",
    )


if __name__ == "__main__":
    with app.app_context(), bind_request_id("init-db"):
        init_db()
        if os.environ.get("SEED_DEMO", "0").strip().lower() in {"1", "true", "yes", "sim"}:
            db = get_db()
            with db.transaction():
                seed_demo(db)
            app.logger.info("demo_marketplace_seeded")
    print("Database initialized.")
