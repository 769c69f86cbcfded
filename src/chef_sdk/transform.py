"""Decode Chef server JSON responses into validated records."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from .errors import ChefParseError

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_json(payload: str, what: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.error(f"Invalid JSON in {what} response: {exc}")
        raise ChefParseError(f"Invalid JSON in {what} response: {payload[:200]}") from exc


def parse_record(model: type[ModelT], payload: str | Any, what: str) -> ModelT:
    """Validate ``payload`` (JSON text or decoded data) against ``model``."""
    data = decode_json(payload, what) if isinstance(payload, str) else payload
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.error(f"{what} validation failed: {exc}")
        raise ChefParseError(f"Invalid {what} record received from the Chef server") from exc
