from .responses import ok, error, error_response, internal_error_response, validation_error_response
from .auth import sync_key_required
from .validation import validate_schema
from .db import transactional

__all__ = [
    'ok',
    'error',
    'error_response',
    'internal_error_response',
    'validation_error_response',
    'sync_key_required',
    'validate_schema',
    'transactional',
]
