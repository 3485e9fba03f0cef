from __future__ import annotations

from functools import wraps
from flask import jsonify
from typing import Callable, Any

from pbc_stage import logs
from pbc_stage.utils.errors import ModelUnavailable


def handle_model_unavailable(func: Callable[..., Any]):
    """
    Decorator: convert ModelUnavailable into HTTP 503.

    Contract:
    - Only catches ModelUnavailable
    - Returns JSON {error, detail}
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModelUnavailable as e:
            logs.info(f"[API] model unavailable: {e}")
            return jsonify({
                "error": "model not available",
                "detail": str(e),
            }), 503

    return wrapper
