from dataclasses import dataclass

from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.email_service import EmailService
from src.storefront.core.services.jwt import JwtGeneratorService, JwtVerificationService
from src.storefront.core.services.storage_service import StorageService


@dataclass
class ApplicationDependencies:
    jwt_verify_service: JwtVerificationService
    jwt_generation_service: JwtGeneratorService
    database_service: DbSessionService
    email_service: EmailService
    storage_service: StorageService
