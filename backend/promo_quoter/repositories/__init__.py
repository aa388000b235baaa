"""
Repository Layer - Data Access

This layer handles all storage queries and returns domain models.
Repositories are reached through a unit of work, which owns the
transaction they run in.
"""
from promo_quoter.repositories.product_repository import ProductRepository
from promo_quoter.repositories.promotion_repository import PromotionRepository
from promo_quoter.repositories.order_repository import OrderRepository
from promo_quoter.repositories.unit_of_work import (
    PostgresUnitOfWork,
    PostgresUnitOfWorkFactory,
    UnitOfWork,
)
from promo_quoter.repositories.memory import InMemoryStore, InMemoryUnitOfWork

__all__ = [
    'ProductRepository',
    'PromotionRepository',
    'OrderRepository',
    'UnitOfWork',
    'PostgresUnitOfWork',
    'PostgresUnitOfWorkFactory',
    'InMemoryStore',
    'InMemoryUnitOfWork'
]
