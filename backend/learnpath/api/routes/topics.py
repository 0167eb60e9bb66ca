"""
Topic survey routes.

Flow per topic:
1. POST /api/store-topic - topic document exists (created once per name)
2. GET /api/topic-questions/{topic} or POST /api/generate-questions -
   fresh questions from the model, saved as the topic's current set
3. POST /api/submit-topic-survey or POST /api/submit-survey - answers
   stored as a survey response, subtopics derived and returned
4. GET /api/user-surveys, GET /api/survey/{id} - past submissions

Each step is its own request. A failure in a later step leaves earlier
documents in place; calling store-topic again reuses the same topic.
"""

from fastapi import APIRouter

from learnpath.api.deps import CurrentUser, Generator, Recommender, Store
from learnpath.schemas.topics import (
    QuestionsResponse,
    StoreTopicResponse,
    SubmitSurveyRequest,
    SubmitTopicSurveyRequest,
    SubtopicsResponse,
    SurveyDetailResponse,
    SurveyResponseRead,
    TopicRead,
    TopicRequest,
    UserSurveysResponse,
    VerifyTopicResponse,
)
from learnpath.services import topics as topic_service

router = APIRouter(prefix="/api", tags=["topics"])


@router.post("/store-topic", response_model=StoreTopicResponse)
async def store_topic(data: TopicRequest, current_user: CurrentUser, store: Store) -> StoreTopicResponse:
    """Create the topic for this user, or return the existing one with the same name."""
    topic, _ = await topic_service.get_or_create_topic(store, current_user.id, data.topic)
    return StoreTopicResponse(topic=TopicRead.model_validate(topic))


@router.get("/verify-topic/{topic:path}", response_model=VerifyTopicResponse)
async def verify_topic(topic: str, current_user: CurrentUser, store: Store) -> VerifyTopicResponse:
    """A blank name is never stored, so it simply does not exist."""
    if not topic.strip():
        return VerifyTopicResponse(exists=False)
    existing = await topic_service.find_topic(store, current_user.id, topic)
    return VerifyTopicResponse(exists=existing is not None)


@router.get("/topic-questions/{topic:path}", response_model=QuestionsResponse)
async def topic_questions(
    topic: str,
    current_user: CurrentUser,
    store: Store,
    generator: Generator,
) -> QuestionsResponse:
    """
    Generate questions for a stored topic.

    Every call asks the model again and replaces the topic's current
    question set, which submit-topic-survey answers against.
    """
    doc = await topic_service.get_topic_or_404(store, current_user.id, topic)
    questions = await generator.generate(doc["name"])
    await topic_service.attach_questions(store, doc, questions)
    return QuestionsResponse(questions=questions)


@router.post("/submit-topic-survey", response_model=SubtopicsResponse)
async def submit_topic_survey(
    data: SubmitTopicSurveyRequest,
    current_user: CurrentUser,
    store: Store,
    recommender: Recommender,
) -> SubtopicsResponse:
    """Answer the topic's current questions; one answer per question, in order."""
    doc = await topic_service.get_topic_or_404(store, current_user.id, data.topic)
    questions = topic_service.topic_questions(doc)
    _, subtopics = await topic_service.submit_survey(
        store,
        recommender,
        user_id=current_user.id,
        topic=doc,
        questions=questions,
        answers=data.answers,
    )
    return SubtopicsResponse(subtopics=subtopics)


@router.post("/generate-questions", response_model=QuestionsResponse)
async def generate_questions(
    data: TopicRequest,
    current_user: CurrentUser,
    store: Store,
    generator: Generator,
) -> QuestionsResponse:
    """Generate questions for a topic, storing the topic first if it is new."""
    doc, _ = await topic_service.get_or_create_topic(store, current_user.id, data.topic)
    questions = await generator.generate(doc["name"])
    await topic_service.attach_questions(store, doc, questions)
    return QuestionsResponse(questions=questions)


@router.post("/submit-survey", response_model=SubtopicsResponse)
async def submit_survey(
    data: SubmitSurveyRequest,
    current_user: CurrentUser,
    store: Store,
    recommender: Recommender,
) -> SubtopicsResponse:
    """Answer a question set supplied by the client."""
    # Reject bad answer sets before touching the store
    topic_service.validate_answers(data.questions, data.answers)
    doc, _ = await topic_service.get_or_create_topic(store, current_user.id, data.topic)
    _, subtopics = await topic_service.submit_survey(
        store,
        recommender,
        user_id=current_user.id,
        topic=doc,
        questions=data.questions,
        answers=data.answers,
    )
    return SubtopicsResponse(subtopics=subtopics)


@router.get("/user-surveys", response_model=UserSurveysResponse)
async def user_surveys(current_user: CurrentUser, store: Store) -> UserSurveysResponse:
    """All survey submissions for the current user, newest first."""
    docs = await topic_service.list_survey_responses(store, current_user.id)
    return UserSurveysResponse(surveys=[SurveyResponseRead.model_validate(d) for d in docs])


@router.get("/survey/{survey_id}", response_model=SurveyDetailResponse)
async def get_survey(survey_id: str, current_user: CurrentUser, store: Store) -> SurveyDetailResponse:
    doc = await topic_service.get_survey_response(store, current_user.id, survey_id)
    return SurveyDetailResponse(survey=SurveyResponseRead.model_validate(doc))
