"""Input validation boundary: pydantic models -> AppError.

Store-level validation failures are surfaced verbatim: the first pydantic
error message becomes the ValidationError message.
"""

from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from src.mp_common.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _first_error_message(exc: pydantic.ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    message = str(first.get("msg", "Invalid input"))
    return f"{field}: {message}" if field else message


def parse_input(model: type[ModelT], data: Any) -> ModelT:
    """Validate raw input into `model`, raising ValidationError on failure."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_error_message(exc)) from None
