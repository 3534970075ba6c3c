"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.security import is_admin
from src.storefront.core.services.admin import ProductAdminService, StatsService
from src.storefront.core.services.cart import CartService
from src.storefront.core.services.catalog import CatalogService
from src.storefront.core.services.checkout.order_admin_service import OrderAdminService
from src.storefront.core.services.checkout.order_service import OrderService
from src.storefront.core.services.checkout.payment_service import PaymentReviewService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt import JwtGeneratorService, JwtVerificationService
from src.storefront.core.services.storage_service import StorageService
from src.storefront.core.services.user import (
    PasswordResetService,
    ProfileService,
    UserManagementService,
)
from src.storefront.entities.core.profile import Profile, ProfileRepository


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session for the request and close it afterwards."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.jwt_verify_service


def get_jwt_generation_service(request: Request) -> JwtGeneratorService:
    """Get the JWT generation service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.jwt_generation_service


def get_email_service(request: Request) -> EmailService:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.email_service


def get_storage_service(request: Request) -> StorageService:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.storage_service


def get_user_management_service(
    db_session: Session = Depends(get_db_session),
) -> UserManagementService:
    return UserManagementService(db_session)


def get_password_reset_service(
    db_session: Session = Depends(get_db_session),
    jwt_gen: JwtGeneratorService = Depends(get_jwt_generation_service),
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
) -> PasswordResetService:
    return PasswordResetService(db_session, jwt_gen, jwt_verify)


def get_profile_service(db_session: Session = Depends(get_db_session)) -> ProfileService:
    return ProfileService(db_session)


def get_catalog_service(db_session: Session = Depends(get_db_session)) -> CatalogService:
    return CatalogService(db_session)


def get_cart_service(db_session: Session = Depends(get_db_session)) -> CartService:
    return CartService(db_session)


def get_order_service(db_session: Session = Depends(get_db_session)) -> OrderService:
    return OrderService(db_session)


def get_order_admin_service(
    db_session: Session = Depends(get_db_session),
) -> OrderAdminService:
    return OrderAdminService(db_session)


def get_payment_review_service(
    db_session: Session = Depends(get_db_session),
) -> PaymentReviewService:
    return PaymentReviewService(db_session)


def get_product_admin_service(
    db_session: Session = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> ProductAdminService:
    return ProductAdminService(db_session, storage)


def get_stats_service(db_session: Session = Depends(get_db_session)) -> StatsService:
    return StatsService(db_session)


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db_session),
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
) -> Profile:
    """Authenticate the request using a Bearer token issued by this API."""

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")

    token = auth_header.split(" ", 1)[1].strip()
    claims = await jwt_verify.verify_generated_jwt(token)

    profile = ProfileRepository(db).get(claims.subject)
    if profile is None:
        raise HTTPException(status_code=401, detail="User not found")

    request.state.claims = claims
    request.state.uid = profile.id
    request.state.roles = set(claims.roles)
    return profile


async def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    """Allow only profiles whose stored role is admin; token roles are not trusted."""
    if not is_admin(user.role):
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return user
