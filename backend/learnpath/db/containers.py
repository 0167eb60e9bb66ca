"""Container names and document type tags."""

USERS = "users"
TOPICS = "topics"
QUESTIONS = "questions"
SESSIONS = "sessions"

USER_TYPE = "user"
SESSION_TYPE = "session"
PERSONALITY_QUESTION_TYPE = "personality_question"
LEARNING_TOPIC_TYPE = "learning_topic"
SURVEY_RESPONSE_TYPE = "topic_survey_response"
