"""Shared JSON route helpers: session guards and exception → HTTP mapping."""

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "서버 오류가 발생했습니다."

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 400),
)


def status_for(exc: DomainError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return 400


def error(message: str, status: int):
    return jsonify({"error": message}), status


def json_errors(view):
    """Map domain exceptions to ``{"error": ...}`` responses; anything else is a logged 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error(str(e), status_for(e))
        except Exception:
            logger.exception("unhandled error on %s %s", request.method, request.path)
            return error(SERVER_ERROR_MESSAGE, 500)

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error("로그인이 필요합니다.", 401)
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error("로그인이 필요합니다.", 401)
        if session.get("role") != Role.MANAGER.value:
            return error("매니저만 접근할 수 있습니다.", 403)
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
