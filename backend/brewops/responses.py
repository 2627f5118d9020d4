# Overview: JSON response envelope helpers shared by every blueprint.

from __future__ import annotations

from flask import jsonify

from .errors import ApiError


def success_response(data: dict | None = None, message: str | None = None, status: int = 200):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def error_response(message: str, status: int, errors: list[dict] | None = None):
    body: dict = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def api_error_response(exc: ApiError):
    return error_response(exc.message, exc.status_code, exc.errors)


def internal_error_response():
    return error_response("Internal server error", 500)
