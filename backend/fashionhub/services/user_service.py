# Overview: Service-layer operations for staff user management (admin only).

from __future__ import annotations

import logging

from ..extensions import db
from ..models import User, Sale, Draft, PurchaseOrder
from ..models.auth import ROLES
from .auth_service import clean_profile_field, hash_password, UserValidationError
from .session_service import revoke_all_user_sessions

logger = logging.getLogger(__name__)

PERMISSION_FIELDS = {"can_discount", "can_refund", "can_view_reports", "max_discount_percent"}
PROFILE_FIELDS = {"name", "phone"}


class UserNotFoundError(Exception):
    """Raised when a user is not found."""
    pass


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def validate_permissions(permissions) -> dict:
    if not isinstance(permissions, dict):
        raise UserValidationError("permissions must be an object")
    clean = {}
    for k, v in permissions.items():
        if k not in PERMISSION_FIELDS:
            raise UserValidationError(f"Unknown permission: {k}")
        if k == "max_discount_percent":
            if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 100:
                raise UserValidationError("max_discount_percent must be an integer between 0 and 100")
        elif not isinstance(v, bool):
            raise UserValidationError(f"{k} must be true or false")
        clean[k] = v
    return clean


def update_user(*, user_id: int, payload: dict, acting_user: User) -> User:
    """
    Update profile, role, status, permissions and optionally the password.

    Deactivating a user or changing their password revokes their sessions.
    Admins cannot demote or deactivate themselves.
    """
    user = get_user(user_id)
    revoke = False

    for k in PROFILE_FIELDS:
        if k in payload:
            setattr(user, k, clean_profile_field(payload[k], k))

    if "role" in payload:
        if not isinstance(payload["role"], str) or payload["role"] not in ROLES:
            raise UserValidationError(f"role must be one of: {', '.join(sorted(ROLES))}")
        if user.id == acting_user.id and payload["role"] != user.role:
            raise UserValidationError("You cannot change your own role")
        user.role = payload["role"]

    if "status" in payload:
        if not isinstance(payload["status"], str) or payload["status"] not in {"active", "inactive"}:
            raise UserValidationError("status must be 'active' or 'inactive'")
        if user.id == acting_user.id and payload["status"] != "active":
            raise UserValidationError("You cannot deactivate your own account")
        revoke = revoke or payload["status"] == "inactive"
        user.status = payload["status"]

    if "permissions" in payload:
        for k, v in validate_permissions(payload["permissions"]).items():
            setattr(user, k, v)

    if payload.get("password"):
        user.password_hash = hash_password(payload["password"])
        revoke = True

    db.session.commit()

    if revoke and user.id != acting_user.id:
        revoke_all_user_sessions(user.id, reason="Account updated by admin")

    return user


def delete_user(*, user_id: int, acting_user: User) -> None:
    if user_id == acting_user.id:
        raise UserValidationError("You cannot delete your own account")
    user = get_user(user_id)

    # Documents keep their name snapshots; drop the user reference
    for model, column in (
        (Sale, Sale.sales_person_id),
        (Draft, Draft.created_by_user_id),
        (PurchaseOrder, PurchaseOrder.created_by_user_id),
    ):
        db.session.query(model).filter(column == user_id).update(
            {column: None}, synchronize_session=False
        )

    db.session.delete(user)
    db.session.commit()
    logger.info("User deleted id=%s by user_id=%s", user_id, acting_user.id)
