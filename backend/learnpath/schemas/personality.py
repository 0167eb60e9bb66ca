"""Personality / learning preference schemas."""

from typing import Any

from pydantic import Field

from learnpath.schemas.base import BaseSchema, SuccessResponse


class SavePersonalityRequest(BaseSchema):
    """Map of preference key -> chosen value. Unknown keys are ignored."""

    responses: dict[str, Any] = Field(default_factory=dict)


class PreferencesResponse(SuccessResponse):
    preferences: dict[str, Any]


class SurveyStatusResponse(SuccessResponse):
    completed: bool
    redirect_to: str


class CompleteSurveyResponse(SuccessResponse):
    redirect_to: str
