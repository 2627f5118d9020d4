# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/brewops/routes/auth.py
"""
Authentication API routes

- Login with username or email
- Self-registration (returns a token straight away)
- Profile of the authenticated caller
- Public role catalogue for registration forms
"""

from flask import Blueprint, request, current_app, g

from ..decorators import require_auth
from ..errors import ApiError
from ..responses import api_error_response, error_response, internal_error_response, success_response
from ..services import auth_service
from ..services.token_service import get_token_service
from ..validation import validate_login, validate_registration


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user) -> dict:
    return auth_service.Identity.from_user(user).to_dict()


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue an identity token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        identifier, password = validate_login(request.get_json(silent=True))

        user = auth_service.authenticate(identifier, password)
        if not user:
            current_app.logger.info("Failed login for %s", identifier)
            return error_response("Invalid credentials", 401)

        token = get_token_service().issue(user.id)
        current_app.logger.info("User %s logged in", user.id)

        return success_response(
            data={"user": _user_payload(user), "token": token},
            message="Login successful",
        )

    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return internal_error_response()


@auth_bp.post("/register")
def register_route():
    """
    Create an account and log it in.

    Duplicate username or email -> 409, and no account row is written.
    """
    try:
        registration = validate_registration(request.get_json(silent=True))
        user = auth_service.register_user(registration)
        token = get_token_service().issue(user.id)
        current_app.logger.info("Registered user %s with role %s", user.id, user.role.name)

        return success_response(
            data={"user": _user_payload(user), "token": token},
            message="User registered successfully",
            status=201,
        )

    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return internal_error_response()


@auth_bp.get("/profile")
@require_auth
def profile_route():
    """Echo the identity resolved by the authentication gate."""
    return success_response(data={"user": g.current_user.to_dict()})


@auth_bp.get("/roles")
def roles_route():
    try:
        roles = [role.to_dict() for role in auth_service.list_roles()]
        return success_response(data={"roles": roles})
    except Exception:
        current_app.logger.exception("Failed to list roles")
        return internal_error_response()
