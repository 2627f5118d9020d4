# Overview: Request decorators for API routes (authentication and role gates).

from functools import wraps
from flask import current_app, g, request

from .errors import ApiError
from .permissions import RoleName
from .responses import api_error_response, internal_error_response
from .services import auth_service, permission_service
from .services.token_service import get_token_service


def current_identity():
    return getattr(g, "current_user", None)


def require_auth(f):
    """
    Require a valid bearer token and a live, active account.

    Sets g.current_user to the resolved auth_service.Identity.

    Returns 401 if:
    - No Authorization header / no bearer token
    - Invalid, malformed or expired token
    - User no longer exists or has been deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = auth_service.extract_bearer_token(request.headers.get("Authorization"))
            identity = auth_service.authenticate_token(token, get_token_service())
        except ApiError as e:
            current_app.logger.warning(
                "Authentication rejected for %s %s: %s", request.method, request.path, e.message
            )
            return api_error_response(e)
        except Exception:
            current_app.logger.exception("Failed to authenticate request")
            return internal_error_response()

        g.current_user = identity
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: RoleName):
    """
    Require the authenticated user to hold one of `roles`.

    Must be stacked below @require_auth.
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                permission_service.authorize(current_identity(), allowed)
            except ApiError as e:
                return api_error_response(e)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
