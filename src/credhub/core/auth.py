"""Accounts, roles and access tokens.

Responsibilities:
- Role constants and role-based redirect paths
- Registration form validation
- Password hashing (bcrypt) and sign-in
- JWT access tokens (python-jose)
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import structlog
from jose import JWTError, jwt

from credhub.config.app_config import AuthConfig, load_app_config
from credhub.core.profiles import ensure_student_profile
from credhub.db.users_repository import (
    UserRecord,
    get_user_by_email,
    get_user_by_id,
    insert_user,
)
from credhub.utils.validators import validate_email

logger = structlog.get_logger(__name__)

# =============================================================================
# ROLES AND ROUTES
# =============================================================================

ROLE_STUDENT = "student"
ROLE_FACULTY = "faculty"
USER_ROLES = (ROLE_STUDENT, ROLE_FACULTY)

ROUTE_PATHS = {
    "LOGIN": "/login",
    "REGISTER": "/register",
    "DASHBOARD": "/dashboard",
    "FACULTY_REVIEW": "/faculty",
    "HOME": "/",
}

TOKEN_TYPE_ACCESS = "access"


def is_valid_role(role: str | None) -> bool:
    """Check that role is one of the known user roles."""
    return role in USER_ROLES


def get_redirect_path(role: str | None) -> str:
    """Landing path after sign-in for the given role."""
    if role == ROLE_STUDENT:
        return ROUTE_PATHS["DASHBOARD"]
    if role == ROLE_FACULTY:
        return ROUTE_PATHS["FACULTY_REVIEW"]
    return ROUTE_PATHS["HOME"]


# =============================================================================
# ERRORS
# =============================================================================


class RegistrationError(Exception):
    """Registration form failed validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class DuplicateUserError(Exception):
    """An account with this email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account with email '{email}' already exists")


class InvalidCredentialsError(Exception):
    """Email or password did not match."""

    def __init__(self):
        super().__init__("Invalid email or password")


class InvalidTokenError(Exception):
    """Access token is malformed, expired or of the wrong type."""


# =============================================================================
# REGISTRATION
# =============================================================================


@dataclass
class RegistrationForm:
    """Validated registration input."""

    email: str
    password: str
    role: str
    full_name: str | None = None
    errors: dict[str, str] = field(default_factory=dict)


def validate_registration(
    email: str,
    password: str,
    confirm_password: str,
    role: str | None,
    full_name: str | None = None,
    config: AuthConfig | None = None,
) -> RegistrationForm:
    """Validate the registration form.

    Raises:
        RegistrationError: With one message per failing field
    """
    config = config or load_app_config().auth
    errors: dict[str, str] = {}
    email = (email or "").strip()

    if not validate_email(email):
        errors["email"] = "Please enter a valid email address"

    if len(password) < config.min_password_length:
        errors["password"] = (
            f"Password must be at least {config.min_password_length} characters"
        )

    if len(confirm_password) < config.min_password_length:
        errors["confirm_password"] = "Please confirm your password"
    elif password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    if not is_valid_role(role):
        errors["role"] = "Please select your role"

    if errors:
        raise RegistrationError(errors)

    return RegistrationForm(
        email=email,
        password=password,
        role=role,
        full_name=full_name.strip() if full_name else None,
    )


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt."""
    if rounds is None:
        rounds = load_app_config().auth.bcrypt_rounds
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against its bcrypt hash."""
    password_bytes = password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        return False


def register_user(
    email: str,
    password: str,
    confirm_password: str,
    role: str | None,
    full_name: str | None = None,
) -> UserRecord:
    """Create an account; students also get an empty profile.

    Raises:
        RegistrationError: If the form is invalid
        DuplicateUserError: If the email is taken
    """
    form = validate_registration(email, password, confirm_password, role, full_name)

    if get_user_by_email(form.email) is not None:
        raise DuplicateUserError(form.email)

    user_id = str(uuid.uuid4())
    try:
        insert_user(
            user_id=user_id,
            email=form.email,
            password_hash=hash_password(form.password),
            role=form.role,
            full_name=form.full_name,
        )
    except sqlite3.IntegrityError as e:
        raise DuplicateUserError(form.email) from e

    if form.role == ROLE_STUDENT:
        result = ensure_student_profile(user_id)
        if not result.success:
            logger.warning("auth.profile_bootstrap_failed", user_id=user_id, error=result.error)

    logger.info("auth.registered", user_id=user_id, role=form.role)

    return get_user_by_id(user_id)


def authenticate(email: str, password: str) -> UserRecord:
    """Sign in with email and password.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
    """
    user = get_user_by_email(email.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.info("auth.sign_in_failed", email=email)
        raise InvalidCredentialsError()

    logger.info("auth.signed_in", user_id=user.id, role=user.role)
    return user


# =============================================================================
# TOKENS
# =============================================================================


def create_access_token(
    user: UserRecord,
    expires_delta: timedelta | None = None,
    config: AuthConfig | None = None,
) -> str:
    """Create a signed JWT carrying the user id and role."""
    config = config or load_app_config().auth
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.access_token_minutes)

    expire = datetime.now(timezone.utc) + expires_delta
    payload = {
        "sub": user.id,
        "role": user.role,
        "email": user.email,
        "exp": expire,
        "type": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(payload, config.get_secret_key(), algorithm=config.algorithm)


def decode_access_token(token: str, config: AuthConfig | None = None) -> dict[str, Any]:
    """Decode and check an access token.

    Raises:
        InvalidTokenError: Bad signature, expired, or not an access token
    """
    config = config or load_app_config().auth
    try:
        payload = jwt.decode(token, config.get_secret_key(), algorithms=[config.algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    if payload.get("type") != TOKEN_TYPE_ACCESS or not payload.get("sub"):
        raise InvalidTokenError("Invalid token type")

    return payload


def get_user_role(token: str | None) -> str | None:
    """Role carried by a token, or None when the token is missing or invalid."""
    if not token:
        return None
    try:
        return decode_access_token(token).get("role")
    except InvalidTokenError:
        return None
