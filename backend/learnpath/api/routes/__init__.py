"""API routes package."""

from learnpath.api.routes import auth, personality, topics

__all__ = ["auth", "personality", "topics"]
