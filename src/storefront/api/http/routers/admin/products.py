"""Back-office catalog management."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query

from src.storefront.api.http.deps import get_product_admin_service
from src.storefront.core.services.admin import (
    AdminProductQuery,
    ProductAdminService,
    ProductInput,
)

router = APIRouter(prefix="/products", tags=["admin-products"])


@router.get("")
def list_products(
    category: str | None = None,
    search: str | None = None,
    sort_by: Literal["price", "stock", "created_at", "name"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    products: ProductAdminService = Depends(get_product_admin_service),
) -> dict[str, Any]:
    query = AdminProductQuery(
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return products.list_products(query)


@router.post("", status_code=201)
def create_product(
    body: ProductInput,
    products: ProductAdminService = Depends(get_product_admin_service),
) -> dict[str, Any]:
    return {"product": products.create_product(body)}


@router.get("/{product_id}")
def get_product(
    product_id: str,
    products: ProductAdminService = Depends(get_product_admin_service),
) -> dict[str, Any]:
    return {"product": products.get_product(product_id)}


@router.put("/{product_id}")
def update_product(
    product_id: str,
    body: ProductInput,
    products: ProductAdminService = Depends(get_product_admin_service),
) -> dict[str, Any]:
    return {"product": products.update_product(product_id, body)}


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    products: ProductAdminService = Depends(get_product_admin_service),
) -> dict[str, Any]:
    products.delete_product(product_id)
    return {"success": True, "message": "Product deleted successfully"}
