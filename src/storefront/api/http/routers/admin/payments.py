"""Manual payment review for bank transfers and mobile wallets."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel

from src.storefront.api.http.deps import (
    get_email_service,
    get_order_admin_service,
    get_payment_review_service,
    get_storage_service,
    require_admin,
)
from src.storefront.core.services.checkout.order_admin_service import OrderAdminService
from src.storefront.core.services.checkout.payment_service import PaymentReviewService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.storage_service import StorageService
from src.storefront.entities.core.profile import Profile

router = APIRouter(tags=["admin-payments"])


class VerifyPaymentRequest(BaseModel):
    order_id: str | None = None
    verified: bool | None = None
    admin_notes: str | None = None
    rejection_reason: str | None = None


@router.get("/pending-payments")
def pending_payments(
    payments: PaymentReviewService = Depends(get_payment_review_service),
) -> dict[str, Any]:
    return {"orders": payments.pending_payments()}


@router.post("/verify-payment")
def verify_payment(
    body: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    admin: Profile = Depends(require_admin),
    payments: PaymentReviewService = Depends(get_payment_review_service),
    orders: OrderAdminService = Depends(get_order_admin_service),
    email: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    order = payments.review(
        body.order_id,
        body.verified,
        admin.id,
        admin_notes=body.admin_notes,
        rejection_reason=body.rejection_reason,
    )

    recipient = orders.customer_email(order)
    if order.payment_verified:
        background_tasks.add_task(email.send_payment_verified, order, recipient)
        message = "Payment verified successfully"
    else:
        background_tasks.add_task(
            email.send_payment_rejected, order, recipient, order.rejection_reason or ""
        )
        message = "Payment rejected"
    return {"success": True, "message": message}


@router.get("/orders/{order_id}/payment-proof")
def payment_proof(
    order_id: str,
    payments: PaymentReviewService = Depends(get_payment_review_service),
) -> dict[str, str]:
    return {"url": payments.payment_proof_url(order_id)}


@router.get("/files/{bucket}/{key:path}")
def stored_file(
    bucket: str,
    key: str,
    storage: StorageService = Depends(get_storage_service),
) -> FileResponse:
    """Serve an uploaded object, including ones from private buckets."""
    path = storage.path_for(bucket, key)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
