"""Personality questions and learning preference routes."""

from typing import Any

from fastapi import APIRouter

from learnpath.api.deps import CurrentUser, Store
from learnpath.db import containers
from learnpath.schemas.base import SuccessResponse
from learnpath.schemas.personality import (
    CompleteSurveyResponse,
    PreferencesResponse,
    SavePersonalityRequest,
    SurveyStatusResponse,
)
from learnpath.services.users import get_user_or_404, mark_survey_completed, save_learning_preferences

router = APIRouter(prefix="/api", tags=["personality"])


def _public_document(doc: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in doc.items() if not k.startswith("_")}


@router.get("/questions")
async def list_personality_questions(current_user: CurrentUser, store: Store) -> list[dict[str, Any]]:
    """Active personality questions in display order."""
    questions = await store.query(containers.QUESTIONS, isActive=True)
    questions.sort(key=lambda q: q.get("order", 0))
    return [_public_document(q) for q in questions]


@router.post("/save-personality", response_model=SuccessResponse)
async def save_personality(
    data: SavePersonalityRequest,
    current_user: CurrentUser,
    store: Store,
) -> SuccessResponse:
    """
    Merge answers into learningPreferences.

    Only known preference keys are kept; anything else is logged and
    dropped without failing the request.
    """
    await save_learning_preferences(store, current_user.id, data.responses)
    return SuccessResponse(message="Responses saved")


@router.get("/user-preferences", response_model=PreferencesResponse)
async def get_preferences(current_user: CurrentUser, store: Store) -> PreferencesResponse:
    user = await get_user_or_404(store, current_user.id)
    return PreferencesResponse(preferences=user.get("learningPreferences") or {})


@router.get("/check-survey-status", response_model=SurveyStatusResponse)
async def check_survey_status(current_user: CurrentUser, store: Store) -> SurveyStatusResponse:
    """Whether the personality survey is done, and where the frontend should go next."""
    user = await get_user_or_404(store, current_user.id)
    completed = bool(user.get("surveyCompleted"))
    return SurveyStatusResponse(completed=completed, redirect_to="/home" if completed else "/survey")


@router.post("/complete-survey", response_model=CompleteSurveyResponse)
async def complete_survey(current_user: CurrentUser, store: Store) -> CompleteSurveyResponse:
    await mark_survey_completed(store, current_user.id)
    return CompleteSurveyResponse(redirect_to="/home")
