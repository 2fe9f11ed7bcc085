from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Mapping
from urllib.parse import urlparse

from .errors import ValidationError
from .time_utils import parse_iso_datetime, to_naive_utc


# Natural-key codes (SKU, asset code): matched after uppercasing
CODE_PATTERN = re.compile(r"^[A-Z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

# Tolerance for money comparisons between client-computed totals
MONEY_TOLERANCE = 0.01

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class FieldError(ValueError):
    """Single-field rule failure; collected into a ValidationError."""


@dataclass(frozen=True)
class Field:
    """
    Declarative rule set for one input field.

    kind selects the coercion: string, code, email, url, number, integer,
    boolean, datetime, choice, id, list. An explicit null is accepted only
    for fields that are neither required nor defaulted.
    """
    kind: str
    label: str | None = None
    required: bool = False
    default: Any = MISSING
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    nonzero: bool = False
    choices: tuple[str, ...] | None = None
    item: "Field | Schema | None" = None
    min_items: int | None = None


# A cross-field rule returns (field, message) on failure, None otherwise.
Rule = Callable[[dict], "tuple[str, str] | None"]


@dataclass(frozen=True)
class Schema:
    """
    A named set of fields plus cross-field rules.

    partial=True gives patch semantics: only provided keys are validated and
    absent keys are neither required nor defaulted. A provided null is still
    refused for required or defaulted fields.
    """
    name: str
    fields: Mapping[str, Field]
    rules: tuple[Rule, ...] = ()
    partial: bool = False
    allow_unknown: bool = False


def _label(name: str, spec: Field) -> str:
    return spec.label or name.replace("_", " ").capitalize()


def _coerce_string(label: str, value: Any) -> str:
    if not isinstance(value, str):
        raise FieldError(f"{label} must be a string")
    return value.strip()


def _coerce_number(label: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FieldError(f"{label} must be a number")
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise FieldError(f"{label} must be a finite number")
    return value


def _coerce_integer(label: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # Query strings arrive as text: plain digits only
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise FieldError(f"{label} must be an integer")
        if "e" in stripped.lower() or "." in stripped:
            raise FieldError(f"{label} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise FieldError(f"{label} must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise FieldError(f"{label} must be an integer")


def _coerce_boolean(label: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
    raise FieldError(f"{label} must be a boolean")


def _coerce_datetime(label: str, value: Any) -> datetime:
    if isinstance(value, (datetime, date)):
        return to_naive_utc(value)
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise FieldError(f"{label} must be an ISO-8601 date")


def _check_bounds(label: str, spec: Field, value: Any) -> None:
    if isinstance(value, str):
        if spec.min_length is not None and len(value) < spec.min_length:
            if spec.min_length == 1:
                raise FieldError(f"{label} is required")
            raise FieldError(f"{label} must be at least {spec.min_length} characters")
        if spec.max_length is not None and len(value) > spec.max_length:
            raise FieldError(f"{label} cannot exceed {spec.max_length} characters")
        return
    if spec.minimum is not None and value < spec.minimum:
        if spec.minimum == 0:
            raise FieldError(f"{label} cannot be negative")
        raise FieldError(f"{label} must be at least {spec.minimum:g}")
    if spec.maximum is not None and value > spec.maximum:
        raise FieldError(f"{label} cannot exceed {spec.maximum:g}")
    if spec.nonzero and value == 0:
        raise FieldError(f"{label} cannot be zero")


def coerce_field(name: str, spec: Field, value: Any, errors: dict[str, str]) -> Any:
    """
    Coerce and check one value. Failures are written into `errors`
    (keyed by dotted path) and MISSING is returned.
    """
    label = _label(name.rsplit(".", 1)[-1], spec)
    try:
        kind = spec.kind
        if kind == "string":
            out = _coerce_string(label, value)
        elif kind == "code":
            out = _coerce_string(label, value).upper()
            if out and not CODE_PATTERN.match(out):
                raise FieldError(
                    f"{label} can only contain uppercase letters, numbers, hyphens, and underscores"
                )
        elif kind == "email":
            out = _coerce_string(label, value).lower()
            if not EMAIL_PATTERN.match(out):
                raise FieldError("Please enter a valid email")
        elif kind == "url":
            out = _coerce_string(label, value)
            parsed = urlparse(out)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise FieldError(f"{label} must be a valid URL")
        elif kind == "number":
            out = _coerce_number(label, value)
        elif kind == "integer":
            out = _coerce_integer(label, value)
        elif kind == "id":
            out = _coerce_integer(label, value)
            if out < 1:
                raise FieldError(f"{label} must be a valid id")
        elif kind == "boolean":
            out = _coerce_boolean(label, value)
        elif kind == "datetime":
            out = _coerce_datetime(label, value)
        elif kind == "choice":
            if not isinstance(value, str) or value not in (spec.choices or ()):
                raise FieldError(f"{label} must be one of: {', '.join(spec.choices or ())}")
            out = value
        elif kind == "list":
            return _coerce_list(name, label, spec, value, errors)
        else:
            raise AssertionError(f"unknown field kind {kind!r}")

        _check_bounds(label, spec, out)
        return out
    except FieldError as exc:
        errors[name] = str(exc)
        return MISSING


def _coerce_list(name: str, label: str, spec: Field, value: Any, errors: dict[str, str]) -> Any:
    if not isinstance(value, list):
        errors[name] = f"{label} must be a list"
        return MISSING
    if spec.min_items is not None and len(value) < spec.min_items:
        errors[name] = f"At least {spec.min_items} {label.lower()} required"
        return MISSING

    out = []
    failed = False
    for i, raw in enumerate(value):
        path = f"{name}.{i}"
        if isinstance(spec.item, Schema):
            item = _validate_mapping(spec.item, raw, errors, prefix=f"{path}.")
        elif isinstance(spec.item, Field):
            item = coerce_field(path, spec.item, raw, errors)
        else:
            item = raw
        if item is MISSING:
            failed = True
        out.append(item)
    return MISSING if failed else out


def _validate_mapping(schema: Schema, payload: Any, errors: dict[str, str], prefix: str = "") -> Any:
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        errors[prefix.rstrip(".") or "_"] = "Invalid payload: expected an object"
        return MISSING

    before = len(errors)

    if not schema.allow_unknown:
        for key in payload.keys():
            if key not in schema.fields:
                errors[f"{prefix}{key}"] = f"Field not allowed: {key}"

    data: dict = {}
    for name, spec in schema.fields.items():
        path = f"{prefix}{name}"
        if name not in payload:
            if schema.partial:
                continue
            if spec.required:
                errors[path] = f"{_label(name, spec)} is required"
            elif spec.default is not MISSING:
                data[name] = spec.default() if callable(spec.default) else spec.default
            continue

        raw = payload[name]
        if raw is None or (isinstance(raw, str) and raw == "" and spec.kind not in {"string", "code"}):
            if spec.required:
                errors[path] = f"{_label(name, spec)} is required"
            elif spec.default is not MISSING:
                # Defaulted fields back NOT NULL columns: omit them, never null them
                errors[path] = f"{_label(name, spec)} cannot be empty"
            else:
                data[name] = None
            continue

        value = coerce_field(path, spec, raw, errors)
        if value is not MISSING:
            data[name] = value

    if len(errors) > before:
        return MISSING

    # Cross-field rules only run once every field passed on its own
    for rule in schema.rules:
        failure = rule(data)
        if failure:
            field_name, message = failure
            errors[f"{prefix}{field_name}"] = message

    if len(errors) > before:
        return MISSING
    return data


def validate_payload(schema: Schema, payload: Any) -> dict:
    """
    Validates + normalizes an untyped payload against a Schema.

    Returns the cleaned dict (only declared fields, normalized values).
    Raises ValidationError listing every failed field otherwise.
    """
    errors: dict[str, str] = {}
    data = _validate_mapping(schema, payload, errors)
    if errors or data is MISSING:
        raise ValidationError(errors)
    return data


# =============================================================================
# Shared building blocks
# =============================================================================

def within_tolerance(a: float, b: float, tolerance: float = MONEY_TOLERANCE) -> bool:
    return abs(a - b) < tolerance


PAGINATION_FIELDS = {
    "page": Field("integer", minimum=1, default=1),
    "limit": Field("integer", minimum=1, maximum=MAX_PAGE_SIZE, default=DEFAULT_PAGE_SIZE),
}


def list_schema(name: str, filters: Mapping[str, Field], rules: tuple[Rule, ...] = ()) -> Schema:
    """List query schema: entity filters plus page/limit."""
    return Schema(name=name, fields={**filters, **PAGINATION_FIELDS}, rules=rules)


def date_window_rule(start: str = "start_date", end: str = "end_date") -> Rule:
    def _rule(data: dict):
        lo, hi = data.get(start), data.get(end)
        if lo is not None and hi is not None and hi < lo:
            return end, "End date cannot be before start date"
        return None
    return _rule


def normalize_code(value: str) -> str:
    """Uppercase/strip a SKU or asset code the same way the validators do."""
    return value.strip().upper()
