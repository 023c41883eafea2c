"""Routers package."""

from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.orders import router as orders_router

__all__ = ["admin_orders_router", "orders_router"]
