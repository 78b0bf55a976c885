# Overview: Success envelope and pagination helpers shared by all routes.

from __future__ import annotations

from flask import jsonify

from .errors import ValidationFailed
from .time_utils import utcnow, to_utc_z

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def success_response(data=None, message: str = "Success", status: int = 200):
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
        "timestamp": to_utc_z(utcnow()),
    }), status


def _int_arg(args, name: str, default: int) -> int:
    raw = args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{name} must be an integer", errors={name: "must be an integer"})


def parse_pagination(args) -> tuple[int, int]:
    """
    Read page/pageSize from query args.

    page >= 1 (default 1), 1 <= pageSize <= 100 (default 10).
    Out-of-range values are rejected rather than clamped.
    """
    page = _int_arg(args, "page", 1)
    page_size = _int_arg(args, "pageSize", DEFAULT_PAGE_SIZE)

    errors = {}
    if page < 1:
        errors["page"] = "must be >= 1"
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        errors["pageSize"] = f"must be between 1 and {MAX_PAGE_SIZE}"
    if errors:
        raise ValidationFailed("Invalid pagination parameters", errors=errors)

    return page, page_size


def parse_bool_arg(args, name: str, default: bool = False) -> bool:
    raw = args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


def paginate(query, page: int, page_size: int, serializer) -> dict:
    total = query.order_by(None).count()
    total_pages = (total + page_size - 1) // page_size
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {
        "items": [serializer(row) for row in rows],
        "totalCount": total,
        "page": page,
        "pageSize": page_size,
        "totalPages": total_pages,
    }
