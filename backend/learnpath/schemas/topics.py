"""Topic, question and survey schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from learnpath.schemas.base import BaseSchema, SuccessResponse


class SurveyQuestion(BaseSchema):
    """A generated multiple-choice question."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, options: list[str]) -> list[str]:
        cleaned = [option.strip() for option in options]
        if any(not option for option in cleaned):
            raise ValueError("options must be non-empty strings")
        return cleaned


class TopicRequest(BaseSchema):
    """Body carrying just a topic name (store-topic, generate-questions)."""

    topic: str = Field(..., min_length=1, max_length=200)


class SubmitTopicSurveyRequest(BaseSchema):
    """Answers for the questions currently stored on a topic."""

    topic: str = Field(..., min_length=1, max_length=200)
    answers: list[str]


class SubmitSurveyRequest(BaseSchema):
    """Answers along with the questions they answer, matched by position."""

    topic: str = Field(..., min_length=1, max_length=200)
    answers: list[str]
    questions: list[SurveyQuestion]


class TopicRead(BaseSchema):
    id: str
    name: str
    user_id: str
    created_at: datetime
    questions: list[SurveyQuestion] = Field(default_factory=list)
    subtopics: list[str] = Field(default_factory=list)


class StoreTopicResponse(SuccessResponse):
    topic: TopicRead


class VerifyTopicResponse(BaseSchema):
    exists: bool


class QuestionsResponse(SuccessResponse):
    questions: list[SurveyQuestion]


class SubtopicsResponse(SuccessResponse):
    subtopics: list[str]


class SurveyResponseRead(BaseSchema):
    """A stored survey submission."""

    id: str
    topic: str
    topic_id: str | None = None
    questions: list[SurveyQuestion] = Field(default_factory=list)
    answers: list[Any]
    subtopics: list[str] = Field(default_factory=list)
    user_id: str
    submitted_at: datetime


class UserSurveysResponse(SuccessResponse):
    surveys: list[SurveyResponseRead]


class SurveyDetailResponse(SuccessResponse):
    survey: SurveyResponseRead
