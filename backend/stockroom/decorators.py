# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import PermissionDeniedError
from .permissions import is_admin_or_above, is_super_admin
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext
    - g.session_token: the plaintext bearer token (for logout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required", "code": "UNAUTHORIZED"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "code": "UNAUTHORIZED"}), 401

        g.current_user = context.user
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


_ROLE_CHECKS = {
    "admin": (is_admin_or_above, "Admin access required"),
    "super_admin": (is_super_admin, "Super admin access required"),
}


def require_role(level: str):
    """
    Require at least `level` ("admin" or "super_admin"). Apply after
    @require_auth.
    """
    check, message = _ROLE_CHECKS[level]

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required", "code": "UNAUTHORIZED"}), 401
            if not check(g.current_user.role):
                raise PermissionDeniedError(message)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
