"""Back-office order management."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel

from src.storefront.api.http.deps import (
    get_email_service,
    get_order_admin_service,
    require_admin,
)
from src.storefront.core.services.checkout.order_admin_service import (
    OrderAdminService,
    order_with_customer,
)
from src.storefront.core.services.email_service import EmailService
from src.storefront.entities.core.profile import Profile
from src.storefront.entities.service.order import OrderStatus

router = APIRouter(prefix="/orders", tags=["admin-orders"])


class StatusUpdateRequest(BaseModel):
    status: str | None = None


@router.get("")
def list_orders(
    status: str | None = None,
    payment_method: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    orders: OrderAdminService = Depends(get_order_admin_service),
) -> dict[str, Any]:
    return orders.list_orders(
        status=status,
        payment_method=payment_method,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/{order_id}")
def get_order(
    order_id: str,
    orders: OrderAdminService = Depends(get_order_admin_service),
) -> dict[str, Any]:
    order, items, customer = orders.get_order(order_id)
    return {
        "order": order_with_customer(order, customer),
        "items": [item.model_dump(mode="json") for item in items],
    }


@router.put("/{order_id}")
def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    admin: Profile = Depends(require_admin),
    orders: OrderAdminService = Depends(get_order_admin_service),
    email: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    updated, previous_status = orders.update_status(order_id, body.status, admin.id)
    if updated.status != previous_status and updated.status in (
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    ):
        background_tasks.add_task(
            email.send_status_update, updated, orders.customer_email(updated)
        )
    return {"success": True, "order": updated.model_dump(mode="json")}
