from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from texlink.domain.models import BRAND, SUPPLIER
from texlink.infrastructure.repositories import CompanyRepository


@dataclass
class Marketplace:
    brand_id: str
    brand_user: str
    brand_viewer: str
    suppliers: Dict[str, str] = field(default_factory=dict)
    supplier_users: Dict[str, str] = field(default_factory=dict)


def seed_marketplace(db, supplier_names=("alfa", "beta", "gama")) -> Marketplace:
    """One brand (operations manager + viewer) and one production manager per supplier."""
    companies = CompanyRepository()
    with db.transaction():
        brand_id = companies.create_company(db, legal_name="Marca Teste Ltda", company_type=BRAND)
        brand_user = companies.create_user(db, name="Bruna Marca", email="bruna@marca.test")
        brand_viewer = companies.create_user(db, name="Vitor Leitura", email="vitor@marca.test")
        companies.add_membership(db, user_id=brand_user, company_id=brand_id, company_role="OPERATIONS_MANAGER")
        companies.add_membership(db, user_id=brand_viewer, company_id=brand_id, company_role="VIEWER")

        market = Marketplace(brand_id=brand_id, brand_user=brand_user, brand_viewer=brand_viewer)
        for name in supplier_names:
            supplier_id = companies.create_company(db, legal_name=f"Faccao {name.title()} Ltda", company_type=SUPPLIER)
            user_id = companies.create_user(db, name=f"Operador {name.title()}", email=f"{name}@faccao.test")
            companies.add_membership(db, user_id=user_id, company_id=supplier_id, company_role="PRODUCTION_MANAGER")
            market.suppliers[name] = supplier_id
            market.supplier_users[name] = user_id
    return market
