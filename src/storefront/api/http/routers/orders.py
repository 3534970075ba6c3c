"""Customer order endpoints: checkout, history, cancellation and payment proofs."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, File, Header, Query, UploadFile

from src.storefront.api.http.deps import (
    get_current_user,
    get_email_service,
    get_order_service,
    get_storage_service,
)
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.services.checkout.order_service import OrderService, PlaceOrderRequest
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.storage_service import StorageService
from src.storefront.entities.core.profile import Profile

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201, dependencies=[Depends(rate_limit_preset("orders"))])
def create_order(
    body: PlaceOrderRequest,
    background_tasks: BackgroundTasks,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    user: Profile = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    email: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    placed = orders.place_order(user, body, idempotency_key)
    if placed.created:
        recipient = (
            body.shipping_address.email if body.shipping_address else None
        ) or user.email
        background_tasks.add_task(email.send_order_confirmation, placed.order, recipient)

    return {
        "success": True,
        "order_id": placed.order.id,
        "message": "Order created successfully",
        "total_amount": placed.order.total_amount,
        "status": placed.order.status,
    }


@router.get("", dependencies=[Depends(rate_limit_preset("standard"))])
def list_orders(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: Profile = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    found = orders.list_orders(user.id, limit=limit, offset=offset)
    return {"success": True, "orders": [order.model_dump(mode="json") for order in found]}


@router.get("/{order_id}", dependencies=[Depends(rate_limit_preset("standard"))])
def get_order(
    order_id: str,
    user: Profile = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    order, items = orders.get_order(user.id, order_id)
    products = orders.item_products(items)

    rendered = []
    for item in items:
        data = item.model_dump(mode="json")
        product = products.get(item.product_id)
        data["product"] = (
            {
                "id": product.id,
                "name": product.name,
                "brand": product.brand,
                "image_url": product.image_url,
            }
            if product
            else None
        )
        rendered.append(data)

    return {"success": True, "order": order.model_dump(mode="json"), "items": rendered}


@router.post("/{order_id}/cancel", dependencies=[Depends(rate_limit_preset("standard"))])
def cancel_order(
    order_id: str,
    user: Profile = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    order = orders.cancel_order(user.id, order_id)
    return {
        "success": True,
        "message": "Order cancelled successfully",
        "order": order.model_dump(mode="json"),
    }


@router.post(
    "/{order_id}/payment-proof",
    dependencies=[Depends(rate_limit_preset("standard"))],
)
async def upload_payment_proof(
    order_id: str,
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    storage: StorageService = Depends(get_storage_service),
) -> dict[str, Any]:
    content = await file.read()
    order = orders.attach_payment_proof(
        user.id,
        order_id,
        storage,
        content,
        file.content_type,
        filename=file.filename,
    )
    return {
        "success": True,
        "message": "Payment proof uploaded successfully",
        "payment_proof_url": order.payment_proof_url,
        "status": order.status,
    }
