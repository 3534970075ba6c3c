"""Public catalog endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.storefront.api.http.deps import get_catalog_service
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.services.catalog import CatalogService, ProductPage, ProductQuery
from src.storefront.core.services.catalog.catalog_service import Facets, SortOption

router = APIRouter(
    prefix="/products",
    tags=["products"],
    dependencies=[Depends(rate_limit_preset("public"))],
)


@router.get("", response_model=ProductPage)
def list_products(
    search: str | None = None,
    category: str | None = None,
    brands: list[str] | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    in_stock: bool = False,
    sort: SortOption = "newest",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductPage:
    query = ProductQuery(
        search=search,
        category=category,
        brands=brands or [],
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort=sort,
        page=page,
        limit=limit,
    )
    return catalog.list_products(query)


@router.get("/facets", response_model=Facets)
def facets(catalog: CatalogService = Depends(get_catalog_service)) -> Facets:
    return catalog.facets()


@router.get("/{product_id}")
def get_product(
    product_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> dict[str, Any]:
    """Return a product with up to four others from the same category."""
    product = catalog.get_product(product_id)
    data = product.model_dump(mode="json")
    data["related"] = [p.model_dump(mode="json") for p in catalog.related(product)]
    return data
