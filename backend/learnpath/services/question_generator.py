"""Generates the topic survey: multiple-choice questions about a learner's background."""

import logging

from pydantic import BaseModel, ValidationError as PydanticValidationError

from learnpath.config import get_settings
from learnpath.exceptions import GenerationError
from learnpath.schemas.topics import SurveyQuestion
from learnpath.services.llm import LLMClient

logger = logging.getLogger(__name__)
settings = get_settings()

SYSTEM_PROMPT = (
    "Generate a learning assessment survey with multiple choice questions about the given topic. "
    "Respond with JSON only, no prose and no code fences."
)

QUESTION_PROMPT_TEMPLATE = """Create a {count}-question survey about {topic} to assess a learner's background and preferences. Include questions about:
- Prior knowledge/experience level
- Learning goals
- Preferred learning methods
- Time availability
- Specific interests within the topic

Each question must have between 2 and 5 short answer options.

Return in this format:
{{
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option 1", "Option 2", "Option 3"]
    }}
  ]
}}"""


class _GeneratedSurvey(BaseModel):
    questions: list[SurveyQuestion]


def build_question_prompt(topic: str, count: int) -> str:
    return QUESTION_PROMPT_TEMPLATE.format(topic=topic, count=count)


def parse_questions(payload: object, count: int) -> list[SurveyQuestion]:
    """
    Validate a parsed model reply against the survey shape.

    Accepts ``{"questions": [...]}`` or a bare list of questions. Extra
    questions beyond ``count`` are dropped; fewer is an error.

    Raises:
        GenerationError: wrong shape or too few questions
    """
    if isinstance(payload, list):
        payload = {"questions": payload}
    try:
        survey = _GeneratedSurvey.model_validate(payload)
    except PydanticValidationError as e:
        raise GenerationError(f"Generated questions have the wrong shape: {e.error_count()} errors") from e

    if len(survey.questions) < count:
        raise GenerationError(f"Expected {count} questions, got {len(survey.questions)}")
    return survey.questions[:count]


class QuestionGenerator:
    """Asks the language model for a fresh question set on every call."""

    def __init__(self, llm: LLMClient, *, question_count: int | None = None):
        self.llm = llm
        self.question_count = question_count or settings.survey_question_count

    async def generate(self, topic: str) -> list[SurveyQuestion]:
        """
        Generate survey questions for a topic.

        Args:
            topic: Topic name as entered by the user

        Returns:
            Exactly ``question_count`` questions, each with at least two options

        Raises:
            GenerationError: call failure, unparsable reply or wrong shape
        """
        prompt = build_question_prompt(topic, self.question_count)
        payload = await self.llm.complete_json(SYSTEM_PROMPT, prompt)
        questions = parse_questions(payload, self.question_count)
        logger.info("Generated %d questions for topic %r", len(questions), topic)
        return questions
