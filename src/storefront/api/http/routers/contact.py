"""Contact form and client-side error reporting."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.api.http.deps import get_db_session
from src.storefront.api.http.middleware.limiter import rate_limit_preset
from src.storefront.core.validation import is_valid_email, sanitize_input
from src.storefront.entities.service.contact import ContactMessage, ContactMessageRepository

router = APIRouter(tags=["contact"])


class ContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None


class ClientErrorReport(BaseModel):
    message: str
    stack: str | None = None
    url: str | None = None
    user_agent: str | None = None


@router.post("/contact", dependencies=[Depends(rate_limit_preset("contact"))])
def submit_contact(
    body: ContactRequest,
    session: Session = Depends(get_db_session),
) -> dict[str, Any]:
    """Store a contact form submission."""
    if not all(
        value and value.strip()
        for value in (body.name, body.email, body.subject, body.message)
    ):
        raise HTTPException(status_code=400, detail="All fields are required")
    email = body.email.strip().lower()
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    message = ContactMessage(
        name=sanitize_input(body.name),
        email=email,
        subject=sanitize_input(body.subject),
        message=sanitize_input(body.message),
    )
    repository = ContactMessageRepository(session)
    created = repository.create(message)
    session.commit()

    logger.bind(contact_id=created.id, email=created.email, subject=created.subject).info(
        "Contact form submission"
    )
    return {
        "success": True,
        "message": "Thank you for your message. We will get back to you soon.",
    }


@router.post("/log-error", dependencies=[Depends(rate_limit_preset("standard"))])
def log_client_error(body: ClientErrorReport) -> dict[str, bool]:
    logger.bind(
        client_url=body.url,
        client_user_agent=body.user_agent,
        client_stack=(body.stack or "")[:2000],
    ).error("Client error: {}", body.message[:500])
    return {"success": True}
