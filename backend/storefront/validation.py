# Overview: Typed request schemas; every JSON body is parsed here before domain logic runs.

"""
One dataclass per endpoint body. Each field declares its JSON key and rules
through body_field():

    @dataclass
    class AddCartItemRequest:
        product_id: int = body_field("productId", int, required=True, min_value=1)
        quantity: int = body_field("quantity", int, default=1, min_value=1)

parse_body(AddCartItemRequest, request.get_json(silent=True)) returns an
instance or raises ValidationFailed with every field error at once:

    {"productId": "is required", "quantity": "must be >= 1"}

Rules:
- Unknown keys are rejected (clients can only set what the schema allows).
- Integers must be real integers: floats, bools, "1e3" and "12.5" fail.
- Strings are trimmed unless the field opts out (passwords). A blank optional
  string becomes None.
- Nested lists of objects are parsed with their own schema.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from .errors import ValidationFailed
from .time_utils import parse_iso_datetime


@dataclass(frozen=True)
class FieldRule:
    key: str
    kind: type
    required: bool = False
    nullable: bool = True
    aliases: tuple[str, ...] = ()
    min_value: int | None = None
    max_value: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    choices: tuple[str, ...] | None = None
    pattern: str | None = None
    item_schema: type | None = None
    strip: bool = True


class _FieldError(Exception):
    pass


def body_field(key: str, kind: type = str, *, default: Any = None, **rules):
    """Declare a request field. All schema fields carry a default so dataclass ordering never matters."""
    rule = FieldRule(key=key, kind=kind, **rules)
    if isinstance(default, list):
        return field(default_factory=list, metadata={"rule": rule})
    return field(default=default, metadata={"rule": rule})


def _coerce_int(raw: Any) -> int:
    # bool is a subclass of int
    if isinstance(raw, bool):
        raise _FieldError("must be an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        raise _FieldError("must be an integer, not a decimal")
    if isinstance(raw, str):
        stripped = raw.strip()
        if not stripped:
            raise _FieldError("must be an integer")
        if "e" in stripped.lower():
            raise _FieldError("must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise _FieldError("must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise _FieldError("must be an integer")
    raise _FieldError("must be an integer")


def _coerce(rule: FieldRule, raw: Any):
    if raw is None:
        if rule.required or not rule.nullable:
            raise _FieldError("cannot be null")
        return None

    if rule.kind is int:
        value = _coerce_int(raw)
        if rule.min_value is not None and value < rule.min_value:
            raise _FieldError(f"must be >= {rule.min_value}")
        if rule.max_value is not None and value > rule.max_value:
            raise _FieldError(f"must be <= {rule.max_value}")
        return value

    if rule.kind is bool:
        if not isinstance(raw, bool):
            raise _FieldError("must be true or false")
        return raw

    if rule.kind is datetime:
        if not isinstance(raw, str):
            raise _FieldError("must be an ISO-8601 datetime")
        try:
            value = parse_iso_datetime(raw)
        except ValueError:
            raise _FieldError("must be an ISO-8601 datetime")
        if value is None and rule.required:
            raise _FieldError("is required")
        return value

    if rule.kind is list:
        if not isinstance(raw, list):
            raise _FieldError("must be a list")
        if rule.min_length is not None and len(raw) < rule.min_length:
            raise _FieldError(f"must contain at least {rule.min_length} item(s)")
        if rule.item_schema is None:
            return list(raw)
        items = []
        nested_errors = {}
        for index, item in enumerate(raw):
            try:
                items.append(parse_body(rule.item_schema, item))
            except ValidationFailed as exc:
                nested_errors[str(index)] = exc.errors or exc.message
        if nested_errors:
            raise _FieldError(nested_errors)
        return items

    # Strings
    if not isinstance(raw, str):
        raise _FieldError("must be a string")
    value = raw.strip() if rule.strip else raw
    if value.strip() == "":
        if rule.required or not rule.nullable:
            raise _FieldError("cannot be blank")
        return None
    if rule.min_length is not None and len(value) < rule.min_length:
        raise _FieldError(f"must be at least {rule.min_length} characters")
    if rule.max_length is not None and len(value) > rule.max_length:
        raise _FieldError(f"exceeds max length {rule.max_length}")
    if rule.choices is not None and value not in rule.choices:
        raise _FieldError(f"must be one of: {', '.join(rule.choices)}")
    if rule.pattern is not None and not re.fullmatch(rule.pattern, value):
        raise _FieldError("has an invalid format")
    return value


def parse_body(schema: type, payload: Any):
    """Validate a JSON payload against a request schema and build the schema instance."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")

    schema_fields = [f for f in fields(schema) if "rule" in f.metadata]

    accepted_keys = set()
    for f in schema_fields:
        rule = f.metadata["rule"]
        accepted_keys.add(rule.key)
        accepted_keys.update(rule.aliases)

    errors: dict[str, Any] = {}
    for key in payload:
        if key not in accepted_keys:
            errors[key] = "field not allowed"

    values = {}
    for f in schema_fields:
        rule: FieldRule = f.metadata["rule"]
        present = [k for k in (rule.key, *rule.aliases) if k in payload]
        if not present:
            if rule.required:
                errors[rule.key] = "is required"
            continue
        try:
            values[f.name] = _coerce(rule, payload[present[0]])
        except _FieldError as exc:
            errors[rule.key] = exc.args[0]

    if errors:
        raise ValidationFailed("Validation failed", errors=errors)

    return schema(**values)


def provided_fields(instance, payload: dict) -> set[str]:
    """Attribute names of schema fields that were actually present in the payload (PATCH-style updates)."""
    present = set()
    for f in fields(instance):
        rule = f.metadata.get("rule")
        if rule is None:
            continue
        if any(k in (payload or {}) for k in (rule.key, *rule.aliases)):
            present.add(f.name)
    return present
