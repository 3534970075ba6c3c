"""Transactional email: message rendering and delivery over an HTTP provider."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.storefront.core.services.checkout.pricing import format_price
from src.storefront.entities.service.order import Order, OrderStatus, PaymentMethod
from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

WALLET_NAMES = {
    PaymentMethod.JAZZCASH.value: "JazzCash",
    PaymentMethod.EASYPAISA.value: "EasyPaisa",
}


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str

    @property
    def idempotency_key(self) -> str:
        """Stable key so the provider won't send duplicates across retries."""
        payload_hash = hashlib.sha256(
            (self.to + "\x1f" + self.subject + "\x1f" + self.body).encode("utf-8")
        ).hexdigest()
        return f"email:{payload_hash}"


class EmailDeliveryError(Exception):
    def __init__(self, message: str, retryable: bool) -> None:
        super().__init__(message)
        self.retryable = retryable


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, EmailDeliveryError):
        return exc.retryable
    return isinstance(exc, httpx.HTTPError)


class EmailService:
    """Render and send customer notifications.

    Sending never raises: failures are logged and reported as ``False`` so a
    notification problem can't fail the order or payment that triggered it.
    When no provider is configured the rendered message is logged instead.
    """

    def __init__(
        self,
        config: ConfigData | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config or get_config()
        self._transport = transport

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    @property
    def _store_name(self) -> str:
        return self._config.store.name

    def _amount(self, order: Order) -> str:
        return format_price(order.total_amount)

    def render_order_confirmation(self, order: Order, to: str) -> EmailMessage:
        method = order.payment_method or PaymentMethod.COD.value
        store = self._store_name
        if method == PaymentMethod.BANK_TRANSFER:
            bank = self._config.payment.bank_account
            title = "Bank Transfer"
            details = (
                "Please transfer the exact amount to:\n"
                f"Bank: {bank.bank}\n"
                f"Account: {bank.account_title}\n"
                f"Account Number: {bank.account_number}\n"
                f"IBAN: {bank.iban}\n\n"
                "Your order will be processed after payment verification "
                "(usually within 24 hours)."
            )
        elif method in WALLET_NAMES:
            title = WALLET_NAMES[method]
            details = (
                f"Transaction ID: {order.transaction_id or 'Pending'}\n\n"
                "Please send payment to:\n"
                f"{title} Number: {self._config.payment.mobile_wallet_number}\n\n"
                "Your order will be processed after payment verification "
                "(usually within 24 hours)."
            )
        else:
            title = "Cash on Delivery"
            details = (
                "Your order has been confirmed and will be processed shortly.\n"
                "You will pay when you receive your order."
            )

        body = (
            f"Order Confirmation - {title}\n\n"
            f"Order ID: {order.id}\n"
            f"Total Amount: {self._amount(order)}\n\n"
            f"{details}\n\n"
            f"Thank you for shopping with {store}!\n"
        )
        return EmailMessage(to=to, subject=f"Order Confirmation - {store}", body=body)

    def render_payment_verified(self, order: Order, to: str) -> EmailMessage:
        store = self._store_name
        body = (
            "Payment Verified - Order Processing\n\n"
            f"Order ID: {order.id}\n"
            f"Total Amount: {self._amount(order)}\n\n"
            "Great news! Your payment has been verified and your order is now being "
            "processed.\nYou will receive another email when your order ships.\n\n"
            f"Thank you for shopping with {store}!\n"
        )
        return EmailMessage(to=to, subject=f"Payment Verified - {store}", body=body)

    def render_payment_rejected(self, order: Order, to: str, reason: str) -> EmailMessage:
        store = self._config.store
        body = (
            "Payment Verification Issue\n\n"
            f"Order ID: {order.id}\n"
            f"Total Amount: {self._amount(order)}\n\n"
            f"We were unable to verify your payment. Reason: {reason}\n\n"
            f"Please contact our support team at {store.support_email} or call "
            f"{store.support_phone}\nwith your order ID and payment details for "
            "assistance.\n\n"
            f"Thank you,\n{store.name} Support Team\n"
        )
        return EmailMessage(
            to=to, subject=f"Payment Verification Issue - {store.name}", body=body
        )

    def render_status_update(self, order: Order, to: str) -> EmailMessage | None:
        store = self._store_name
        if order.status == OrderStatus.SHIPPED:
            headline = "Your order is on its way!"
            subject = f"Order Shipped - {store}"
        elif order.status == OrderStatus.DELIVERED:
            headline = "Your order has been delivered. We hope you love it!"
            subject = f"Order Delivered - {store}"
        else:
            return None
        body = (
            f"{headline}\n\n"
            f"Order ID: {order.id}\n"
            f"Total Amount: {self._amount(order)}\n\n"
            f"Track your order at {self._config.store.site_url}/orders/{order.id}\n\n"
            f"Thank you for shopping with {store}!\n"
        )
        return EmailMessage(to=to, subject=subject, body=body)

    def render_password_reset(self, to: str, token: str) -> EmailMessage:
        store = self._config.store
        minutes = max(1, self._config.jwt.password_reset_ttl_seconds // 60)
        body = (
            "Password Reset Request\n\n"
            "We received a request to reset the password for your account.\n"
            f"Use this link within {minutes} minutes to choose a new password:\n\n"
            f"{store.site_url}/auth/reset-password?token={token}\n\n"
            "The link can be used once. If you did not ask for a reset, ignore this "
            "email and your password stays the same.\n\n"
            f"{store.name} Support Team\n"
        )
        return EmailMessage(to=to, subject=f"Reset your password - {store.name}", body=body)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------
    async def send_order_confirmation(self, order: Order, to: str | None) -> bool:
        if not to:
            return False
        return await self.send(self.render_order_confirmation(order, to))

    async def send_payment_verified(self, order: Order, to: str | None) -> bool:
        if not to:
            return False
        return await self.send(self.render_payment_verified(order, to))

    async def send_payment_rejected(self, order: Order, to: str | None, reason: str) -> bool:
        if not to:
            return False
        return await self.send(self.render_payment_rejected(order, to, reason))

    async def send_status_update(self, order: Order, to: str | None) -> bool:
        message = self.render_status_update(order, to) if to else None
        if message is None:
            return False
        return await self.send(message)

    async def send_password_reset(self, to: str | None, token: str) -> bool:
        if not to:
            return False
        return await self.send(self.render_password_reset(to, token))

    async def send(self, message: EmailMessage) -> bool:
        cfg = self._config.email
        log = logger.bind(email_to=message.to, email_subject=message.subject)

        if not cfg.enabled:
            log.debug("Email disabled; not sending")
            return False

        if not cfg.api_url or not cfg.api_key:
            log.info("Email provider not configured; message follows\n{}", message.body)
            return True

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, cfg.max_attempts)),
            wait=wait_exponential(
                multiplier=cfg.backoff_seconds, max=cfg.max_backoff_seconds
            ),
            retry=retry_if_exception(_is_retryable),
            before_sleep=lambda state: log.bind(attempt=state.attempt_number).warning(
                "Email send failed, retrying: {}", state.outcome.exception()
            ),
            reraise=True,
        )
        try:
            await retrying(self._post, message)
        except (EmailDeliveryError, httpx.HTTPError) as e:
            log.error("Email send failed: {}", e)
            return False
        log.info("Email sent")
        return True

    async def _post(self, message: EmailMessage) -> None:
        cfg = self._config.email

        # JSON shaped like most HTTP mail providers
        payload = {
            "from": {"email": cfg.sender, "name": self._store_name},
            "personalizations": [{"to": [{"email": message.to}], "subject": message.subject}],
            "content": [{"type": "text/plain", "value": message.body}],
        }
        headers = {
            "Authorization": f"Bearer {cfg.api_key}",
            "Idempotency-Key": message.idempotency_key,
            "Content-Type": "application/json",
            "User-Agent": "storefront-api/email",
        }

        async with httpx.AsyncClient(
            timeout=cfg.timeout_seconds, transport=self._transport
        ) as client:
            resp = await client.post(cfg.api_url, json=payload, headers=headers)

        if 200 <= resp.status_code < 300:
            return
        if resp.status_code == 429 or 500 <= resp.status_code < 600:
            raise EmailDeliveryError(
                f"Provider {resp.status_code}: {resp.text[:200]}", retryable=True
            )
        raise EmailDeliveryError(
            f"Email send failed {resp.status_code}: {resp.text[:200]}", retryable=False
        )
