"""Pydantic schemas for API request/response validation."""

from learnpath.schemas.base import BaseSchema, SuccessResponse
from learnpath.schemas.user import SessionUser
from learnpath.schemas.auth import AuthResponse, HealthResponse, LoginRequest, SignupRequest
from learnpath.schemas.personality import (
    CompleteSurveyResponse,
    PreferencesResponse,
    SavePersonalityRequest,
    SurveyStatusResponse,
)
from learnpath.schemas.topics import (
    QuestionsResponse,
    StoreTopicResponse,
    SubmitSurveyRequest,
    SubmitTopicSurveyRequest,
    SubtopicsResponse,
    SurveyDetailResponse,
    SurveyQuestion,
    SurveyResponseRead,
    TopicRead,
    TopicRequest,
    UserSurveysResponse,
    VerifyTopicResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "SuccessResponse",
    # User
    "SessionUser",
    # Auth
    "AuthResponse",
    "HealthResponse",
    "LoginRequest",
    "SignupRequest",
    # Personality
    "CompleteSurveyResponse",
    "PreferencesResponse",
    "SavePersonalityRequest",
    "SurveyStatusResponse",
    # Topics & surveys
    "QuestionsResponse",
    "StoreTopicResponse",
    "SubmitSurveyRequest",
    "SubmitTopicSurveyRequest",
    "SubtopicsResponse",
    "SurveyDetailResponse",
    "SurveyQuestion",
    "SurveyResponseRead",
    "TopicRead",
    "TopicRequest",
    "UserSurveysResponse",
    "VerifyTopicResponse",
]
