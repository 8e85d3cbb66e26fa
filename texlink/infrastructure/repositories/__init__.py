from texlink.infrastructure.repositories.company_repository import CompanyRepository
from texlink.infrastructure.repositories.order_repository import OrderRepository

__all__ = ["CompanyRepository", "OrderRepository"]
