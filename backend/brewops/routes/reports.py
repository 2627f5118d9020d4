from flask import Blueprint, current_app

from ..decorators import require_auth
from ..responses import internal_error_response, success_response
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/delivery-stats")
@require_auth
def delivery_stats():
    """Chart data for every dashboard. Read-only; any authenticated role."""
    try:
        return success_response(data=reporting_service.delivery_stats())
    except Exception:
        current_app.logger.exception("Failed to build delivery stats")
        return internal_error_response()
