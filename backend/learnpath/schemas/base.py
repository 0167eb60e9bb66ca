"""Base schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,  # Documents and clients use camelCase
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class SuccessResponse(BaseSchema):
    """Envelope shared by every JSON response."""

    success: bool = True
    message: str | None = None
