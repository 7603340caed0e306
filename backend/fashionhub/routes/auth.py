# Overview: Staff login, current-user lookup and logout.

"""
Authentication routes.

- POST /login: email + password -> opaque bearer token
- GET /me: the user behind the presented token
- POST /logout: revoke the presented token
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, bearer_token
from ..services import auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Request body: {"email": "...", "password": "..."}

    Returns:
    - 200: {user, token, session}
    - 400: email or password missing
    - 401: wrong credentials or inactive account (indistinguishable)
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if user is None:
            current_app.logger.info("Failed login attempt for %s", email)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception:
        current_app.logger.exception("Login failed for %s", email)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "message": "Login successful",
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
    })


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()})


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401
    return jsonify({"message": "Logout successful"})
