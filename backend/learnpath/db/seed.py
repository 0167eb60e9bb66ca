"""Default personality questions, one per learning preference key."""

import logging

from learnpath.db import containers
from learnpath.db.store import DocumentConflict, DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_PERSONALITY_QUESTIONS: list[dict] = [
    {
        "id": "pq-style",
        "key": "style",
        "questionText": "How do you prefer to take in new material?",
        "questionType": "single_choice",
        "options": ["visual", "auditory", "reading", "hands-on"],
        "category": "learning_style",
        "order": 1,
    },
    {
        "id": "pq-language",
        "key": "language",
        "questionText": "Which language would you like to learn in?",
        "questionType": "single_choice",
        "options": ["English", "Spanish", "French", "German", "Hindi"],
        "category": "preferences",
        "order": 2,
    },
    {
        "id": "pq-difficulty",
        "key": "difficulty",
        "questionText": "What difficulty should new lessons start at?",
        "questionType": "single_choice",
        "options": ["beginner", "intermediate", "advanced"],
        "category": "learning_style",
        "order": 3,
    },
    {
        "id": "pq-session-duration",
        "key": "sessionDurationMin",
        "questionText": "How many minutes can you usually spend per study session?",
        "questionType": "single_choice",
        "options": [15, 30, 45, 60],
        "category": "schedule",
        "order": 4,
    },
    {
        "id": "pq-notifications",
        "key": "notifications",
        "questionText": "Would you like study reminders?",
        "questionType": "boolean",
        "options": [True, False],
        "category": "preferences",
        "order": 5,
    },
    {
        "id": "pq-theme",
        "key": "theme",
        "questionText": "Which theme do you prefer?",
        "questionType": "single_choice",
        "options": ["light", "dark", "system"],
        "category": "preferences",
        "order": 6,
    },
    {
        "id": "pq-time-of-day",
        "key": "timeOfDay",
        "questionText": "When do you study best?",
        "questionType": "single_choice",
        "options": ["morning", "afternoon", "evening", "night"],
        "category": "schedule",
        "order": 7,
    },
]


async def seed_personality_questions(store: DocumentStore) -> int:
    """Insert the default questions if the container is empty. Returns the number inserted."""
    if await store.count(containers.QUESTIONS) > 0:
        return 0

    inserted = 0
    for question in DEFAULT_PERSONALITY_QUESTIONS:
        body = {**question, "type": containers.PERSONALITY_QUESTION_TYPE, "isActive": True, "required": True}
        try:
            await store.create(containers.QUESTIONS, body, partition_key=body["id"])
            inserted += 1
        except DocumentConflict:
            # Another worker seeded concurrently
            continue
    logger.info("Seeded %d personality questions", inserted)
    return inserted
