"""Services for external integrations and document access."""

from learnpath.services.llm import LLMClient
from learnpath.services.question_generator import QuestionGenerator
from learnpath.services.subtopic_recommender import SubtopicRecommender

__all__ = ["LLMClient", "QuestionGenerator", "SubtopicRecommender"]
