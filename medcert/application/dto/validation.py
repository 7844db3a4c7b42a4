from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from medcert.application.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "__root__")
        message = str(error.get("msg") or "").removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Некорректные данные"


def validate_request(model_cls: type[ModelT], payload: Any) -> ModelT:
    """Build a request DTO, turning pydantic errors into ValidationError."""
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(format_validation_error(exc)) from exc
