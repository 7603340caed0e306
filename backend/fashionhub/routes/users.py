# Overview: Flask API routes for staff user administration; parses input and returns JSON responses.

"""
User management routes.

SECURITY: Admin only. Admins cannot delete, demote or deactivate themselves.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..models.auth import ROLE_ADMIN, ROLE_SALES_PERSON
from ..services import auth_service, user_service
from ..services.auth_service import PasswordValidationError, UserValidationError
from ..services.user_service import UserNotFoundError
from ..validation import ConflictError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    users = user_service.list_users()
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user_route():
    """
    Request body:
    {
        "name": "...", "email": "...", "phone": "...", "password": "...",
        "role": "salesPerson",                   // admin | salesPerson
        "permissions": {"can_discount": true, "max_discount_percent": 10}
    }
    """
    data = request.get_json(silent=True) or {}

    for field in ("name", "email", "phone", "password"):
        if not data.get(field):
            return jsonify({"error": f"{field} is required"}), 400

    try:
        permissions = data.get("permissions")
        if permissions is not None:
            permissions = user_service.validate_permissions(permissions)
        user = auth_service.create_user(
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            password=data["password"],
            role=data.get("role", ROLE_SALES_PERSON),
            permissions=permissions,
            status=data.get("status", "active"),
        )
        return jsonify(user.to_dict()), 201
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_user_route(user_id: int):
    try:
        return jsonify(user_service.get_user(user_id).to_dict())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(user_id=user_id, payload=data, acting_user=g.current_user)
        return jsonify(user.to_dict())
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id=user_id, acting_user=g.current_user)
    except UserNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UserValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"message": "User deleted successfully"})
