import logging
from flask import Blueprint
from werkzeug.exceptions import HTTPException
from app.services.erpnext import ERPNextAPIError
from app.services.sync_lock import SyncAlreadyRunning
from app.utils.responses import error

errors_bp = Blueprint("errors_bp", __name__)

@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code, code=e.code)

@errors_bp.app_errorhandler(ERPNextAPIError)
def handle_erpnext_error(e):
    logging.error("ERPNext request failed: %s (%s)", e.message, e.status_code)
    return error(f"ERPNext error: {e.message}", status=502, code=502)

@errors_bp.app_errorhandler(SyncAlreadyRunning)
def handle_sync_already_running(e):
    return error(str(e), status=409, code=409)

@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return error(
        "An unexpected error occurred. Please try again later.",
        status=500,
        code=500,
    )
