"""Input validation and sanitization helpers.

These are plain predicates; services turn a failed check into a
``ValidationFailed`` with a user-facing message.
"""

import html
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Literal

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Pakistani mobile numbers: 03001234567, +923001234567, 0300-1234567
PHONE_RE = re.compile(r"^(\+92|0)?3[0-9]{2}[-\s]?[0-9]{7}$")
POSTAL_CODE_RE = re.compile(r"^\d{5,6}$")
TRANSACTION_ID_RE = re.compile(r"^[A-Za-z0-9]{8,20}$")
PRODUCT_NAME_RE = re.compile(r"^[A-Za-z0-9\s\-'&.()]+$")
SPECIAL_CHAR_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")
TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

DANGEROUS_PATTERNS = (
    re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE),
    re.compile(r"<iframe[\s\S]*?>[\s\S]*?</iframe>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<object[\s\S]*?>[\s\S]*?</object>", re.IGNORECASE),
    re.compile(r"<embed[\s\S]*?>", re.IGNORECASE),
)

MAX_PRICE = 10_000_000
MAX_STOCK = 999_999
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def sanitize_input(value: str | None) -> str:
    """Strip tags, HTML-escape what is left and trim."""
    if not value or not isinstance(value, str):
        return ""
    stripped = TAG_RE.sub("", value)
    escaped = html.escape(stripped, quote=True).replace("/", "&#x2F;")
    return escaped.strip()


def contains_dangerous_content(value: str | None) -> bool:
    if not value:
        return False
    return any(pattern.search(value) for pattern in DANGEROUS_PATTERNS)


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def is_valid_phone(phone: str | None) -> bool:
    if not phone:
        return False
    return PHONE_RE.match(WHITESPACE_RE.sub("", phone)) is not None


def is_valid_postal_code(postal_code: str | None) -> bool:
    if not postal_code:
        return False
    return POSTAL_CODE_RE.match(WHITESPACE_RE.sub("", postal_code)) is not None


def is_valid_transaction_id(transaction_id: str | None) -> bool:
    if not transaction_id:
        return False
    return TRANSACTION_ID_RE.match(transaction_id.strip()) is not None


def is_valid_product_name(name: str | None) -> bool:
    if not name or not 3 <= len(name) <= 100:
        return False
    return PRODUCT_NAME_RE.match(name) is not None


def is_valid_price(price: float | int | None) -> bool:
    """Positive, at most ten million and at most two decimal places."""
    if price is None or isinstance(price, bool):
        return False
    try:
        amount = Decimal(str(price))
    except InvalidOperation:
        return False
    if not amount.is_finite() or amount <= 0 or amount > MAX_PRICE:
        return False
    return -amount.normalize().as_tuple().exponent <= 2


def is_valid_stock(stock: int | float | None) -> bool:
    if stock is None or isinstance(stock, bool):
        return False
    if isinstance(stock, float):
        if not stock.is_integer():
            return False
        stock = int(stock)
    return isinstance(stock, int) and 0 <= stock <= MAX_STOCK


@dataclass
class PasswordValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    strength: Literal["weak", "medium", "strong"] = "weak"


def validate_password(password: str | None) -> PasswordValidation:
    """Check the password policy, reporting every rule that fails."""
    if not password:
        return PasswordValidation(is_valid=False, errors=["Password is required"])

    errors: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append("Password must be at least 8 characters long")
    if len(password) > PASSWORD_MAX_LENGTH:
        errors.append("Password is too long (max 128 characters)")

    has_upper = re.search(r"[A-Z]", password) is not None
    has_lower = re.search(r"[a-z]", password) is not None
    has_digit = re.search(r"[0-9]", password) is not None
    has_special = SPECIAL_CHAR_RE.search(password) is not None

    if not has_upper:
        errors.append("Password must contain at least one uppercase letter")
    if not has_lower:
        errors.append("Password must contain at least one lowercase letter")
    if not has_digit:
        errors.append("Password must contain at least one number")
    if not has_special:
        errors.append("Password must contain at least one special character")

    score = sum(
        [has_upper, has_lower, has_digit, has_special, len(password) >= 12]
    )
    strength: Literal["weak", "medium", "strong"] = "weak"
    if score >= 4:
        strength = "strong"
    elif score >= 3:
        strength = "medium"

    return PasswordValidation(is_valid=not errors, errors=errors, strength=strength)
