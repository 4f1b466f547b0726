from __future__ import annotations

import logging
import secrets
import time
from datetime import timedelta
from typing import Callable, Optional

import jwt
from fastapi import APIRouter, BackgroundTasks, Depends, Header
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import config, mailer, models, schemas
from ..db import get_db
from ..errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationError
from ..models import utcnow
from ..rate_limit import rate_limit

router = APIRouter()
logger = logging.getLogger("estatefinder.auth")

# Use bcrypt_sha256 to avoid bcrypt's 72-byte password limit and handle unicode safely.
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")

# Roles open to self-registration; admins are provisioned directly in the database
SELF_SERVICE_ROLES = ("seeker", "agent")

RESET_MESSAGE = "If that email exists, password reset instructions have been sent."


# ----------------
# Helpers
# ----------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user: models.User) -> str:
    now = int(time.time())
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "iat": now,
        "exp": now + config.JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALG)


def decode_token(token: str) -> dict:
    # A bad or expired token is reported as 403, unlike a missing one (401)
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALG])
    except jwt.ExpiredSignatureError as exc:
        raise Forbidden("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise Forbidden("Invalid token") from exc


# ----------------
# Dependencies
# ----------------
def bearer_token_from_auth_header(authorization: Optional[str]) -> str:
    if not authorization:
        raise Unauthenticated("Missing token")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise Unauthenticated("Missing token")
    return parts[1].strip()


def get_current_user(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> schemas.CurrentUser:
    """Identity decoded from the bearer token; the database is not consulted."""
    payload = decode_token(bearer_token_from_auth_header(authorization))
    try:
        return schemas.CurrentUser.model_validate(payload)
    except ValueError as exc:
        raise Forbidden("Invalid token payload") from exc


def require_role(role: str) -> Callable[..., schemas.CurrentUser]:
    """Exact role match; there is no hierarchy (an admin is not an agent)."""

    def _dependency(user: schemas.CurrentUser = Depends(get_current_user)) -> schemas.CurrentUser:
        if user.role != role:
            raise Forbidden("Forbidden: Insufficient role")
        return user

    return _dependency


require_agent = require_role("agent")
require_admin = require_role("admin")


# ----------------
# Routes
# ----------------
@router.post(
    "/auth/register",
    response_model=schemas.AuthResponse,
    dependencies=[Depends(rate_limit("register"))],
)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)) -> schemas.AuthResponse:
    if not (payload.email and payload.password and payload.first_name and payload.last_name and payload.role):
        raise ValidationError("Missing required fields")
    if payload.role not in SELF_SERVICE_ROLES:
        raise ValidationError("Invalid role")

    existing = db.query(models.User).filter(models.User.email == payload.email).first()
    if existing:
        raise Conflict("Email already registered")

    user = models.User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone or None,
        role=payload.role,
        company_name=payload.company_name or None,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise Conflict("Email already registered") from exc
    db.refresh(user)

    logger.info("auth.registered", extra={"user_id": user.id, "role": user.role})
    return schemas.AuthResponse(token=create_access_token(user=user), user=schemas.UserRead.model_validate(user))


@router.post(
    "/auth/login",
    response_model=schemas.AuthResponse,
    dependencies=[Depends(rate_limit("login"))],
)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)) -> schemas.AuthResponse:
    if not payload.email or not payload.password:
        raise ValidationError("Missing email or password")

    user = db.query(models.User).filter(models.User.email == payload.email).first()
    if user is None:
        # Same hashing cost as a real check so response time does not reveal the account
        pwd_context.dummy_verify()
        raise ValidationError("Invalid credentials")
    if not verify_password(payload.password, user.password_hash):
        raise ValidationError("Invalid credentials")

    return schemas.AuthResponse(token=create_access_token(user=user), user=schemas.UserRead.model_validate(user))


@router.post(
    "/auth/password_resets",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(rate_limit("password_reset"))],
)
def request_password_reset(
    payload: schemas.PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """
    Issue a single-use reset token and email it.

    The response is identical whether or not the account exists.
    """
    if not payload.email:
        raise ValidationError("Email is required")

    user = db.query(models.User).filter(models.User.email == payload.email).first()
    if user is not None:
        now = utcnow()
        reset = models.PasswordReset(
            user_id=user.id,
            reset_token=secrets.token_urlsafe(32),
            created_at=now,
            expires_at=now + timedelta(hours=config.RESET_TOKEN_TTL_HOURS),
            used=False,
        )
        db.add(reset)
        db.commit()
        background_tasks.add_task(mailer.send_email, mailer.reset_email(user.email, reset.reset_token))
        logger.info("auth.password_reset_issued", extra={"user_id": user.id})

    return schemas.MessageResponse(message=RESET_MESSAGE)


@router.get("/auth/profile", response_model=schemas.UserRead)
def get_profile(
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(get_current_user),
) -> models.User:
    obj = db.get(models.User, user.id)
    if obj is None:
        raise NotFound("User not found")
    return obj


@router.put("/auth/profile", response_model=schemas.UserRead)
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(get_current_user),
) -> models.User:
    """Update name, phone and company; blank values keep the stored ones. Email and role never change."""
    obj = db.get(models.User, user.id)
    if obj is None:
        raise NotFound("User not found")

    for field in ("first_name", "last_name", "phone", "company_name"):
        value = getattr(payload, field)
        if value is not None and value.strip():
            setattr(obj, field, value.strip())
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(obj)
    return obj
