from .catalog_service import CatalogService, ProductPage, ProductQuery

__all__ = ["CatalogService", "ProductPage", "ProductQuery"]
