"""
Topic and survey response document helpers.

Both document types live in the ``topics`` container, partitioned by
user id, so every lookup is scoped to the owner at the query level.

A topic's normalised name is reserved as a unique key inside the owner's
partition. Creating an existing topic therefore fails atomically and the
caller falls back to reading it, instead of racing a check-then-create.
"""

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from learnpath.config import get_settings
from learnpath.db import containers
from learnpath.db.store import DocumentConflict, DocumentStore, PreconditionFailed, read_modify_replace
from learnpath.exceptions import ConflictError, NotFoundError, ValidationError
from learnpath.schemas.topics import SurveyQuestion
from learnpath.services.users import utc_now_iso

if TYPE_CHECKING:
    from learnpath.services.subtopic_recommender import SubtopicRecommender

logger = logging.getLogger(__name__)
settings = get_settings()


def clean_topic_name(name: str) -> str:
    """Trim a topic name; raise ValidationError if nothing is left."""
    cleaned = " ".join(name.split())
    if not cleaned:
        raise ValidationError("Topic is required")
    return cleaned


def topic_key(name: str) -> str:
    """Key under which a topic name is unique for its owner."""
    return clean_topic_name(name).casefold()


async def find_topic(store: DocumentStore, user_id: str, name: str) -> dict[str, Any] | None:
    topics = await store.query(
        containers.TOPICS,
        partition_key=user_id,
        doc_type=containers.LEARNING_TOPIC_TYPE,
        nameKey=topic_key(name),
        limit=1,
    )
    return topics[0] if topics else None


async def get_topic_or_404(store: DocumentStore, user_id: str, name: str) -> dict[str, Any]:
    topic = await find_topic(store, user_id, name)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


async def get_or_create_topic(store: DocumentStore, user_id: str, name: str) -> tuple[dict[str, Any], bool]:
    """
    Return the user's topic with this name, creating it if needed.

    Returns:
        (topic document, True if this call created it)
    """
    name = clean_topic_name(name)
    existing = await find_topic(store, user_id, name)
    if existing is not None:
        return existing, False

    now = utc_now_iso()
    body = {
        "id": str(uuid4()),
        "type": containers.LEARNING_TOPIC_TYPE,
        "name": name,
        "nameKey": topic_key(name),
        "userId": user_id,
        "createdAt": now,
        "updatedAt": now,
        "questions": [],
        "answers": [],
        "subtopics": [],
        "surveyMeta": {},
    }
    try:
        topic = await store.create(
            containers.TOPICS,
            body,
            partition_key=user_id,
            unique_keys={"nameKey": body["nameKey"]},
        )
    except DocumentConflict:
        # Lost the race to a concurrent create of the same name
        topic = await find_topic(store, user_id, name)
        if topic is None:
            raise
        return topic, False

    logger.info("Stored topic %r for user %s", name, user_id)
    return topic, True


async def update_topic(
    store: DocumentStore,
    topic: dict[str, Any],
    mutate: Callable[[dict[str, Any]], None],
) -> dict[str, Any]:
    """
    Compare-and-swap update of a topic document.

    Raises:
        NotFoundError: the topic disappeared
        ConflictError: every attempt lost to a concurrent writer
    """

    def apply(doc: dict[str, Any]) -> None:
        mutate(doc)
        doc["updatedAt"] = utc_now_iso()

    try:
        updated = await read_modify_replace(
            store,
            containers.TOPICS,
            topic["id"],
            partition_key=topic["userId"],
            mutate=apply,
            attempts=settings.max_replace_attempts,
        )
    except PreconditionFailed as e:
        raise ConflictError("Topic was modified concurrently, please retry") from e
    if updated is None:
        raise NotFoundError("Topic not found")
    return updated


async def attach_questions(
    store: DocumentStore,
    topic: dict[str, Any],
    questions: Sequence[SurveyQuestion],
) -> dict[str, Any]:
    """Make ``questions`` the topic's current question set."""
    dumped = [q.model_dump() for q in questions]

    def apply(doc: dict[str, Any]) -> None:
        doc["questions"] = dumped
        meta = dict(doc.get("surveyMeta") or {})
        meta["questionsGeneratedAt"] = utc_now_iso()
        meta["questionCount"] = len(dumped)
        doc["surveyMeta"] = meta

    return await update_topic(store, topic, apply)


def topic_questions(topic: dict[str, Any]) -> list[SurveyQuestion]:
    return [SurveyQuestion.model_validate(q) for q in topic.get("questions") or []]


async def record_subtopics(
    store: DocumentStore,
    topic: dict[str, Any],
    *,
    answers: Sequence[str],
    subtopics: Sequence[str],
    response_id: str,
) -> dict[str, Any]:
    """Store the latest answers and subtopics on the topic."""

    def apply(doc: dict[str, Any]) -> None:
        doc["answers"] = list(answers)
        doc["subtopics"] = list(subtopics)
        meta = dict(doc.get("surveyMeta") or {})
        meta["lastResponseId"] = response_id
        meta["lastSubmittedAt"] = utc_now_iso()
        meta["submissionCount"] = int(meta.get("submissionCount", 0)) + 1
        doc["surveyMeta"] = meta

    return await update_topic(store, topic, apply)


def validate_answers(questions: Sequence[SurveyQuestion], answers: Sequence[str]) -> list[str]:
    """
    One non-empty answer per question, matched by position.

    Raises:
        ValidationError: counts differ or an answer is blank
    """
    if not questions:
        raise ValidationError("No questions have been generated for this topic")
    if len(answers) != len(questions):
        raise ValidationError(f"Expected {len(questions)} answers, got {len(answers)}")
    cleaned = [answer.strip() for answer in answers]
    if any(not answer for answer in cleaned):
        raise ValidationError("Every question needs an answer")
    return cleaned


async def create_survey_response(
    store: DocumentStore,
    *,
    user_id: str,
    topic_name: str,
    topic_id: str | None,
    questions: Sequence[SurveyQuestion],
    answers: Sequence[str],
) -> dict[str, Any]:
    """Append a survey submission. Subtopics are filled in once recommended."""
    response_id = str(uuid4())
    body = {
        "id": response_id,
        "type": containers.SURVEY_RESPONSE_TYPE,
        "topic": topic_name,
        "topicId": topic_id,
        "questions": [q.model_dump() for q in questions],
        "answers": list(answers),
        "subtopics": [],
        "userId": user_id,
        "submittedAt": utc_now_iso(),
    }
    return await store.create(containers.TOPICS, body, partition_key=user_id)


async def set_response_subtopics(
    store: DocumentStore,
    response: dict[str, Any],
    subtopics: Sequence[str],
) -> dict[str, Any]:
    updated = {**response, "subtopics": list(subtopics)}
    return await store.replace(containers.TOPICS, updated, partition_key=response["userId"])


async def list_survey_responses(store: DocumentStore, user_id: str) -> list[dict[str, Any]]:
    """All of a user's submissions, newest first."""
    return await store.query(
        containers.TOPICS,
        partition_key=user_id,
        doc_type=containers.SURVEY_RESPONSE_TYPE,
        order_by="submittedAt",
        descending=True,
    )


async def get_survey_response(store: DocumentStore, user_id: str, response_id: str) -> dict[str, Any]:
    """
    One submission owned by the user.

    Raises:
        NotFoundError: absent, not a survey response, or owned by someone else
    """
    doc = await store.read(containers.TOPICS, response_id, partition_key=user_id)
    if doc is None or doc.get("type") != containers.SURVEY_RESPONSE_TYPE:
        raise NotFoundError("Survey not found")
    return doc


async def submit_survey(
    store: DocumentStore,
    recommender: "SubtopicRecommender",
    *,
    user_id: str,
    topic: dict[str, Any],
    questions: Sequence[SurveyQuestion],
    answers: Sequence[str],
) -> tuple[dict[str, Any], list[str]]:
    """
    Record a submission and derive subtopics from it.

    The response document is written before the model is asked, so a
    failed recommendation still leaves the answers on record (with no
    subtopics). Nothing is rolled back.

    Returns:
        (stored response, subtopics)
    """
    cleaned = validate_answers(questions, answers)
    response = await create_survey_response(
        store,
        user_id=user_id,
        topic_name=topic["name"],
        topic_id=topic["id"],
        questions=questions,
        answers=cleaned,
    )
    subtopics = await recommender.recommend(topic["name"], questions, cleaned)
    response = await set_response_subtopics(store, response, subtopics)
    await record_subtopics(store, topic, answers=cleaned, subtopics=subtopics, response_id=response["id"])
    logger.info("Survey %s for topic %r produced %d subtopics", response["id"], topic["name"], len(subtopics))
    return response, subtopics
