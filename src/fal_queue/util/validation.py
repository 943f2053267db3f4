from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import DecodeError

M = TypeVar("M", bound=BaseModel)


def get_model_from_payload(payload: Any, model_class: type[M], endpoint: str) -> M:
    """
    Validate a decoded JSON body against the schema for `endpoint`.

    An empty body counts as an empty object, so schemas with all-optional
    fields accept it. Anything else that doesn't fit raises DecodeError.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise DecodeError(
            f"{endpoint}: expected a JSON object, got {type(payload).__name__}"
        )
    try:
        return model_class.model_validate(payload)
    except ValidationError as ve:
        raise DecodeError(f"{endpoint}: unexpected response shape: {ve}") from ve
