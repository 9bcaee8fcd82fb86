# storefront/utils/response.py
from datetime import datetime, timezone

from flask import jsonify


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_response(data=None, message="OK", status_code=200):
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
        "timestamp": _timestamp(),
    }), status_code


def error_response(message, status_code=500, errors=None):
    return jsonify({
        "success": False,
        "message": message,
        "errors": errors,
        "timestamp": _timestamp(),
    }), status_code


def paginated_response(data, pagination, message="OK", status_code=200):
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
        "pagination": pagination,
        "timestamp": _timestamp(),
    }), status_code
