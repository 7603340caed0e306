# Overview: Authentication and role gates for API routes.

from functools import wraps

from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer":
        return None
    return token.strip() or None


def _unauthenticated():
    return jsonify({"error": "Authentication required"}), 401


def require_auth(f):
    """
    Resolve the bearer token and expose g.current_user / g.session_context.

    401 when the header is missing or the session is unknown, expired,
    revoked, idle too long, or belongs to an inactive user.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return _unauthenticated()

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session_context = context
        g.current_user = context.user
        return f(*args, **kwargs)

    return wrapper


def require_role(*roles: str):
    """Apply after require_auth. 403 unless the user holds one of roles."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = g.get("current_user")
            if user is None:
                return _unauthenticated()
            if user.role not in roles:
                return jsonify({"error": "Permission denied", "required_roles": list(roles)}), 403
            return f(*args, **kwargs)
        return wrapper
    return decorator


def require_reports_access(f):
    # admin, or a salesPerson granted can_view_reports
    @wraps(f)
    def wrapper(*args, **kwargs):
        user = g.get("current_user")
        if user is None:
            return _unauthenticated()
        if not (user.is_admin or user.can_view_reports):
            return jsonify({"error": "Permission denied"}), 403
        return f(*args, **kwargs)
    return wrapper
