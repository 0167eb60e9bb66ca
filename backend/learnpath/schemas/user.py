"""User schemas."""

from learnpath.schemas.base import BaseSchema


class SessionUser(BaseSchema):
    """The identity carried by a session and returned by auth endpoints."""

    id: str
    email: str
    username: str
