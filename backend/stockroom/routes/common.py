# Overview: Request parsing shared by the API blueprints.

from flask import g, request

from ..validation import Schema, validate_payload


def validated_body(schema: Schema) -> dict:
    """JSON body validated against `schema`. A missing/invalid body counts as {}."""
    payload = request.get_json(silent=True)
    return validate_payload(schema, payload if payload is not None else {})


def validated_query(schema: Schema) -> dict:
    """Query string validated against a list schema (values arrive as text)."""
    args = {k: v for k, v in request.args.items() if v != ""}
    return validate_payload(schema, args)


def actor_id() -> int:
    return g.current_user.id
