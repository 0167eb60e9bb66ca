"""Derives prioritised subtopics from a learner's survey answers."""

import logging
from collections.abc import Sequence

from learnpath.config import get_settings
from learnpath.exceptions import GenerationError
from learnpath.schemas.topics import SurveyQuestion
from learnpath.services.llm import LLMClient

logger = logging.getLogger(__name__)
settings = get_settings()

SYSTEM_PROMPT = (
    "You are a learning advisor. Analyze survey responses and recommend personalized subtopics. "
    "Respond with JSON only, no prose and no code fences."
)


def build_subtopic_prompt(
    topic: str,
    questions: Sequence[SurveyQuestion],
    answers: Sequence[str],
    count: int,
) -> str:
    """Pair each question with the answer at the same position."""
    transcript = "\n\n".join(
        f"Q: {question.question}\nA: {answer}" for question, answer in zip(questions, answers)
    )
    placeholders = ", ".join(f'"Subtopic {i}"' for i in range(1, count + 1))
    return f"""Based on these survey responses about learning {topic}:

{transcript}

Analyze the learner's responses and generate {count} personalized subtopics they should focus on, ordered by priority. Return as a JSON object:

{{"subtopics": [{placeholders}]}}"""


def parse_subtopics(payload: object, count: int) -> list[str]:
    """
    Extract the ordered subtopic list from a parsed reply.

    Accepts a bare JSON array or an object with a ``subtopics`` array.
    Entries must be non-empty strings. The result is truncated to ``count``.

    Raises:
        GenerationError: wrong shape or fewer than ``count`` entries
    """
    if isinstance(payload, dict):
        payload = payload.get("subtopics")
    if not isinstance(payload, list):
        raise GenerationError("Generated subtopics are not a list")

    subtopics: list[str] = []
    for item in payload:
        if not isinstance(item, str) or not item.strip():
            raise GenerationError("Generated subtopics must be non-empty strings")
        subtopics.append(item.strip())

    if len(subtopics) < count:
        raise GenerationError(f"Expected {count} subtopics, got {len(subtopics)}")
    return subtopics[:count]


class SubtopicRecommender:
    """Turns question/answer pairs into an ordered study list."""

    def __init__(self, llm: LLMClient, *, subtopic_count: int | None = None):
        self.llm = llm
        self.subtopic_count = subtopic_count or settings.subtopic_count

    async def recommend(
        self,
        topic: str,
        questions: Sequence[SurveyQuestion],
        answers: Sequence[str],
    ) -> list[str]:
        """
        Recommend subtopics for a topic given the learner's answers.

        Raises:
            GenerationError: call failure, unparsable reply or wrong shape
        """
        prompt = build_subtopic_prompt(topic, questions, answers, self.subtopic_count)
        payload = await self.llm.complete_json(SYSTEM_PROMPT, prompt)
        subtopics = parse_subtopics(payload, self.subtopic_count)
        logger.info("Recommended %d subtopics for topic %r", len(subtopics), topic)
        return subtopics
