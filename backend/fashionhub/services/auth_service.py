# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every sale and purchase order must be attributable to a staff member.
Uses bcrypt for password hashing.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters required
- Emails are stored and matched lowercase
- Inactive users cannot authenticate
- Session tokens managed separately (see session_service.py)
"""

import logging

import bcrypt

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_ADMIN, ROLE_SALES_PERSON, ROLES
from ..validation import ConflictError
from fashionhub.time_utils import utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Permission defaults applied when a user is created without explicit flags
DEFAULT_PERMISSIONS = {
    ROLE_ADMIN: {
        "can_discount": True,
        "can_refund": True,
        "can_view_reports": True,
        "max_discount_percent": 50,
    },
    ROLE_SALES_PERSON: {
        "can_discount": True,
        "can_refund": False,
        "can_view_reports": False,
        "max_discount_percent": 10,
    },
}


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserValidationError(Exception):
    """Raised when user data fails validation."""
    pass


class SetupError(Exception):
    """Raised when initial setup has already been completed."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


PROFILE_LIMITS = {"name": 255, "phone": 32}


def clean_profile_field(value, field: str) -> str:
    """Stripped, non-blank and within the column length; raises UserValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise UserValidationError(f"{field} must be a non-empty string")
    value = value.strip()
    if len(value) > PROFILE_LIMITS[field]:
        raise UserValidationError(f"{field} exceeds max length {PROFILE_LIMITS[field]}")
    return value


def normalize_email(email: str) -> str:
    if not isinstance(email, str) or "@" not in email:
        raise UserValidationError("A valid email is required")
    return email.strip().lower()


def create_user(
    *,
    name: str,
    email: str,
    phone: str,
    password: str,
    role: str = ROLE_SALES_PERSON,
    permissions: dict | None = None,
    status: str = "active",
) -> User:
    """
    Create new user with bcrypt password hashing.

    Args:
        name: Display name
        email: Login email (unique, case-insensitive)
        phone: Contact phone
        password: Plaintext password (>= 6 chars)
        role: admin or salesPerson
        permissions: Optional overrides of the role's default permission flags
        status: active or inactive

    Returns:
        Created User object

    Raises:
        UserValidationError: Missing fields or unknown role/status
        PasswordValidationError: Password too short
        ConflictError: Email already registered
    """
    if not isinstance(role, str) or role not in ROLES:
        raise UserValidationError(f"role must be one of: {', '.join(sorted(ROLES))}")
    if not isinstance(status, str) or status not in {"active", "inactive"}:
        raise UserValidationError("status must be 'active' or 'inactive'")
    name = clean_profile_field(name, "name")
    phone = clean_profile_field(phone, "phone")

    email = normalize_email(email)
    if db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    flags = dict(DEFAULT_PERMISSIONS[role])
    flags.update(permissions or {})

    user = User(
        name=name,
        email=email,
        phone=phone,
        password_hash=hash_password(password),
        role=role,
        status=status,
        **flags,
    )

    db.session.add(user)
    db.session.commit()
    logger.info("User created id=%s role=%s", user.id, role)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    if not email or not password:
        return None

    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.status == "active",
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def setup_required() -> bool:
    """True until the first admin account exists."""
    return db.session.query(User.id).filter(User.role == ROLE_ADMIN).first() is None


def create_initial_admin(*, name: str, email: str, phone: str, password: str) -> User:
    """
    Create the first admin account.

    Raises:
        SetupError: If an admin already exists
    """
    if not setup_required():
        raise SetupError("Admin user already exists. Setup has already been completed.")
    return create_user(
        name=name,
        email=email,
        phone=phone,
        password=password,
        role=ROLE_ADMIN,
    )
