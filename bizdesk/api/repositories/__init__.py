# api/repositories/__init__.py
"""
Repository layer public API (REST-backed).

Usage:
    from bizdesk.api.repositories import (
        AccountsRepo, Account,
        EntitiesRepo, Entity, OrderRef,
        ProductsRepo, Product, Variant,
        OrdersRepo,
        OrganizationRepo, Organization,
    )
"""

from .accounts_repo import AccountsRepo, Account
from .entities_repo import EntitiesRepo, Entity, OrderRef
from .products_repo import ProductsRepo, Product, Variant
from .orders_repo import OrdersRepo
from .organization_repo import OrganizationRepo, Organization

__all__ = [
    "AccountsRepo", "Account",
    "EntitiesRepo", "Entity", "OrderRef",
    "ProductsRepo", "Product", "Variant",
    "OrdersRepo",
    "OrganizationRepo", "Organization",
]
