# Overview: Flask API routes for authentication; login, logout, current user and password flows.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..schemas import CHANGE_PASSWORD, FORGOT_PASSWORD, LOGIN, RESET_PASSWORD, VERIFY_RESET_TOKEN
from ..services import auth_service, session_service
from .common import validated_body

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent"


@auth_bp.post("/login")
def login():
    """
    Exchange email + password for a bearer token.

    The same 401 is returned for an unknown email and a wrong password.
    """
    data = validated_body(LOGIN)
    user = auth_service.authenticate(data["email"], data["password"])

    session, token = session_service.create_session(
        user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return {
        "token": token,
        "expires_at": session.to_dict()["expires_at"],
        "user": user.to_dict(),
    }


@auth_bp.post("/logout")
@require_auth
def logout():
    session_service.revoke_session(g.session_token)
    return {"ok": True}


@auth_bp.get("/me")
@require_auth
def me():
    return {"user": g.current_user.to_dict()}


@auth_bp.post("/change-password")
@require_auth
def change_password():
    data = validated_body(CHANGE_PASSWORD)
    auth_service.change_password(
        user_id=g.current_user.id,
        current_password=data["current_password"],
        new_password=data["new_password"],
        keep_token=g.session_token,
    )
    return {"ok": True}


@auth_bp.post("/forgot-password")
def forgot_password():
    """Same answer whether or not the email is registered."""
    data = validated_body(FORGOT_PASSWORD)
    token = auth_service.request_password_reset(data["email"])

    body = {"ok": True, "message": FORGOT_PASSWORD_MESSAGE}
    # No mailer: local development can opt in to seeing the token
    if token and current_app.config.get("RESET_TOKEN_IN_RESPONSE"):
        body["reset_token"] = token
    return body


@auth_bp.post("/verify-reset-token")
def verify_reset_token():
    data = validated_body(VERIFY_RESET_TOKEN)
    return {"valid": auth_service.verify_reset_token(data["token"])}


@auth_bp.post("/reset-password")
def reset_password():
    data = validated_body(RESET_PASSWORD)
    auth_service.reset_password(token=data["token"], new_password=data["password"])
    return {"ok": True}
