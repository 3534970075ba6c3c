from .product_admin_service import AdminProductQuery, ProductAdminService, ProductInput
from .stats_service import StatsService

__all__ = ["AdminProductQuery", "ProductAdminService", "ProductInput", "StatsService"]
