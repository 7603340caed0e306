# Overview: First-run setup routes; create the initial admin account.

from flask import Blueprint, request, jsonify

from ..services import auth_service
from ..services.auth_service import PasswordValidationError, UserValidationError, SetupError
from ..validation import ConflictError


setup_bp = Blueprint("setup", __name__, url_prefix="/api/setup")


@setup_bp.get("/status")
def setup_status_route():
    required = auth_service.setup_required()
    return jsonify({
        "setup_required": required,
        "message": "No admin user found. Please create one." if required else "System is ready.",
    })


@setup_bp.post("/create-admin")
def create_admin_route():
    """
    Create the first admin. Refused once any admin exists.

    Request body: {"name": "...", "email": "...", "phone": "...", "password": "..."}
    """
    data = request.get_json(silent=True) or {}

    for field in ("name", "email", "phone", "password"):
        if not data.get(field):
            return jsonify({"error": f"{field} is required"}), 400

    try:
        user = auth_service.create_initial_admin(
            name=data["name"],
            email=data["email"],
            phone=data["phone"],
            password=data["password"],
        )
    except SetupError as e:
        return jsonify({"error": str(e)}), 400
    except (UserValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"message": "Admin user created successfully", "user": user.to_dict()}), 201
