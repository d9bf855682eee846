"""Request helpers shared by the JSON blueprints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from flask import current_app, request

from ..context import AppContext
from ..errors import OwnershipError, ValidationError

USER_HEADER = "X-User-Id"


def app_context() -> AppContext:
    return current_app.extensions["pennywise"]


def current_user_id() -> int:
    """Resolve the caller from the ``X-User-Id`` header set by the auth proxy."""

    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw.isdigit():
        raise OwnershipError(f"Missing or invalid {USER_HEADER} header")
    return int(raw)


def json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def require(payload: dict[str, Any], *names: str) -> None:
    missing = [name for name in names if payload.get(name) in (None, "")]
    if missing:
        raise ValidationError("Missing required fields", details=missing)


def parse_datetime(value: Any, *, field: str) -> Optional[datetime]:
    """Parse an ISO-8601 value into a naive UTC datetime."""

    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO-8601 date") from exc
    if parsed.tzinfo is not None:
        # Columns hold naive timestamps; offsets are folded into UTC first
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_amount(value: Any, *, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc


def parse_now() -> Optional[datetime]:
    """Optional ``?at=`` override used to evaluate a report at a fixed instant."""

    return parse_datetime(request.args.get("at"), field="at")


def parse_id(value: Any, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer") from exc
