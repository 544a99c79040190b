"""Common schema configuration shared across API contracts."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def require_utf8(value: str) -> str:
    """Reject strings that cannot be encoded, such as lone surrogates from JSON escapes."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError("must be valid UTF-8 text") from e
    return value


Utf8Str = Annotated[str, AfterValidator(require_utf8)]


class CamelModel(BaseModel):
    """
    Base schema exchanging camelCase JSON keys.

    Responses are serialized by alias; requests accept either the alias or
    the field name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    """Plain acknowledgement message."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    detail: str
    code: str
