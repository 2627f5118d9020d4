# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/brewops/routes/users.py
"""
User management routes.

Admins and managers can read; only admins can change status or role, or
delete. Admins can never target their own account with those changes.
"""

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles
from ..errors import ApiError
from ..permissions import USER_ADMINS, USER_READERS
from ..responses import api_error_response, internal_error_response, success_response
from ..services import user_service
from ..validation import parse_bool, parse_role_id, require_json_object

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_roles(*USER_READERS)
def list_users():
    try:
        users = [user.to_dict() for user in user_service.list_users()]
        return success_response(data={"users": users})
    except Exception:
        current_app.logger.exception("Failed to list users")
        return internal_error_response()


@users_bp.get("/<int:user_id>")
@require_auth
@require_roles(*USER_READERS)
def get_user(user_id: int):
    try:
        return success_response(data={"user": user_service.get_user(user_id).to_dict()})
    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get user")
        return internal_error_response()


@users_bp.patch("/<int:user_id>/status")
@require_auth
@require_roles(*USER_ADMINS)
def update_user_status(user_id: int):
    """
    Request body:
    - isActive: bool (required)
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        is_active = parse_bool(data.get("isActive"), "isActive")

        user_service.set_user_active(g.current_user, user_id, is_active)
        current_app.logger.info(
            "User %s %s user %s", g.current_user.id, "activated" if is_active else "deactivated", user_id
        )
        return success_response(message=f"User {'activated' if is_active else 'deactivated'} successfully")

    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update user status")
        return internal_error_response()


@users_bp.patch("/<int:user_id>/role")
@require_auth
@require_roles(*USER_ADMINS)
def update_user_role(user_id: int):
    """
    Request body:
    - roleId: int (required)
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        role_id = parse_role_id(data.get("roleId"))

        user_service.set_user_role(g.current_user, user_id, role_id)
        current_app.logger.info("User %s changed role of user %s to %s", g.current_user.id, user_id, role_id)
        return success_response(message="User role updated successfully")

    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update user role")
        return internal_error_response()


@users_bp.delete("/<int:user_id>")
@require_auth
@require_roles(*USER_ADMINS)
def delete_user(user_id: int):
    try:
        user_service.delete_user(g.current_user, user_id)
        current_app.logger.info("User %s deleted user %s", g.current_user.id, user_id)
        return success_response(message="User deleted successfully")

    except ApiError as e:
        return api_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return internal_error_response()
