# --- ecocreds/utils/api.py ---
import logging
from datetime import datetime, timezone

from flask import jsonify

from ..services.errors import EcoCredsError

logger = logging.getLogger(__name__)


def _api_time():
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def api_ok(message, data=None):
    return {
        "status": True,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time(),
        }
    }


def api_error(message, data=None):
    return {
        "status": False,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time(),
        }
    }


# ---- standard API response format ------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r


def register_error_handlers(app):
    @app.errorhandler(EcoCredsError)
    def handle_ecocreds_error(e):
        logger.warning("request rejected: %s (%s)", e.message, e.code)
        return err(e.message, e.http_status, {"error": e.as_api()})

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return err(str(e), 422)
